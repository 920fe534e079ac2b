import pytest

from stella.models.agent import ConversationTurn, EntityMention
from stella.operations.catalog import build_default_catalog
from stella.prompts.loader import PromptLoader


@pytest.fixture
def loader():
    return PromptLoader()


def test_prompt_loader_strips_front_matter(loader):
    content = loader.load("system/assistant.md")
    assert not content.startswith("---")
    assert "You are Stella" in content


def test_prompt_metadata(loader):
    metadata = loader.get_metadata("agents/intent_classifier.md")
    assert metadata["name"] == "intent_classifier"
    assert metadata["max_tokens"] == 20


def test_prompt_entries_are_cached(loader):
    loader.load("agents/operation_matcher.md")
    assert "agents/operation_matcher.md" in loader.cache


def test_missing_prompt_raises(loader):
    with pytest.raises(FileNotFoundError):
        loader.load("agents/does_not_exist.md")
    with pytest.raises(FileNotFoundError):
        loader.render("agents/does_not_exist.md")


def test_render_requires_every_variable(loader):
    from jinja2 import UndefinedError

    with pytest.raises(UndefinedError):
        loader.render("agents/operation_matcher.md", query="Top products")


def test_classifier_renders_history(loader):
    rendered = loader.render(
        "agents/intent_classifier.md",
        query="And the week before?",
        history=[ConversationTurn(sender="user", content="Weekly sales report")],
    )
    assert "Classify the user's latest message" in rendered
    assert "- user: Weekly sales report" in rendered
    assert "And the week before?" in rendered
    assert "---" not in rendered.splitlines()[0]


def test_two_tier_classifier_labels(loader):
    rendered = loader.render("agents/intent_classifier_two_tier.md", query="Hi", history=[])
    assert "data_query or conversational" in rendered


def test_matcher_lists_catalog(loader):
    rendered = loader.render(
        "agents/operation_matcher.md",
        catalog=build_default_catalog().describe(),
        query="What's running low?",
    )
    assert "listLowStockProducts(threshold=10)" in rendered
    assert "respond with: none" in rendered


def test_extractor_lists_parameters_and_mentions(loader):
    operation = build_default_catalog().get("getProductsByCategory")
    rendered = loader.render(
        "agents/parameter_extractor.md",
        operation=operation,
        query="Show me all snacks",
        mentions=[EntityMention(type="category", name="Snacks", id="c-1")],
        today="2024-05-01",
    )
    assert "Extract the parameters for the function `getProductsByCategory`" in rendered
    assert "- categoryName (string, required)" in rendered
    assert "- category 'Snacks' (id: c-1)" in rendered
    assert "Today's date: 2024-05-01" in rendered


def test_synthesizer_includes_schema_and_limit(loader):
    rendered = loader.render(
        "agents/query_synthesizer.md",
        schema="Table `products`:",
        query="Average price per category",
        mentions=[],
        row_limit=20,
    )
    assert "Generate a PostgreSQL query" in rendered
    assert "Table `products`:" in rendered
    assert "Add LIMIT 20" in rendered
    assert "REFERENCED ENTITIES" not in rendered
