"""
Unit Tests for Health Endpoints
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from stella import __version__
from stella.api.main import app
from stella.connectors.base import ConnectionError


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["version"] == __version__


def test_root(client):
    data = client.get("/").json()

    assert data["name"] == "Stella API"
    assert data["docs"] == "/docs"


def test_ready(client, mock_connector):
    with patch.dict(
        "stella.api.main.app_state", {"connector": mock_connector, "pipeline": MagicMock()}
    ):
        response = client.get("/api/v1/ready")

    assert response.status_code == 200
    assert response.json()["checks"] == {"database": True, "pipeline": True}
    mock_connector.execute.assert_awaited_once_with("SELECT 1")


def test_not_ready_without_database(client):
    with patch.dict("stella.api.main.app_state", {"connector": None, "pipeline": None}):
        response = client.get("/api/v1/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"
    assert response.json()["checks"] == {"database": False, "pipeline": False}


def test_not_ready_when_database_fails(client, mock_connector):
    mock_connector.execute = AsyncMock(side_effect=ConnectionError("pool closed"))

    with patch.dict(
        "stella.api.main.app_state", {"connector": mock_connector, "pipeline": MagicMock()}
    ):
        response = client.get("/api/v1/ready")

    assert response.status_code == 503
    assert response.json()["checks"]["database"] is False
