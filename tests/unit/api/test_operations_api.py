"""
Unit Tests for Operation Catalog Endpoints
"""

import pytest
from fastapi.testclient import TestClient

from stella.api.main import app


@pytest.fixture
def client():
    return TestClient(app)


def test_list_operations(client):
    response = client.get("/api/v1/operations")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == len(data["operations"])
    assert data["categories"] == ["products", "transactions", "companies", "categories", "admins"]
    top = next(op for op in data["operations"] if op["name"] == "getTopSellingProducts")
    assert top["parameters"] == [
        {
            "name": "limit",
            "type": "number",
            "required": False,
            "description": "Number of products to return",
            "default": 5,
        }
    ]


def test_filter_by_category(client):
    data = client.get("/api/v1/operations", params={"category": "admins"}).json()

    assert [op["name"] for op in data["operations"]] == ["getAllAdmins", "getAdminsByRole"]
    assert data["total"] == 2


def test_search(client):
    data = client.get("/api/v1/operations", params={"search": "out of stock"}).json()

    assert "listOutOfStockProducts" in [op["name"] for op in data["operations"]]


def test_unknown_category_is_empty(client):
    data = client.get("/api/v1/operations", params={"category": "weather"}).json()

    assert data["operations"] == []
    assert data["total"] == 0


def test_suggestions(client):
    data = client.get("/api/v1/suggestions").json()

    assert len(data["suggestions"]) == 10
    assert data["suggestions"][0] == "What are the top selling products?"
