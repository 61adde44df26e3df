import pytest
import yaml

from flowaudit.discovery import CatalogDiscoveryProvider
from flowaudit.orchestrator import AutoValidator


@pytest.mark.asyncio
async def test_catalog_ranks_by_keyword_overlap(catalog):
    provider = CatalogDiscoveryProvider(catalog)
    nodes = await provider.search_nodes("sentiment analysis web scraping")
    assert [n["name"] for n in nodes] == ["HTTP Request", "OpenAI", "HTML Extract"]


@pytest.mark.asyncio
async def test_catalog_stopwords_do_not_match(catalog):
    provider = CatalogDiscoveryProvider(catalog)
    assert await provider.search_nodes("the and of") == []


@pytest.mark.asyncio
async def test_catalog_templates_and_docs(catalog):
    provider = CatalogDiscoveryProvider(catalog)
    templates = await provider.search_templates("employee review analysis")
    assert [t["name"] for t in templates] == ["Review sentiment digest"]
    assert await provider.search_templates("database backup") == []

    nodes = await provider.search_nodes("sentiment analysis web scraping")
    docs = await provider.get_documentation(nodes)
    # HTML Extract has no documentation entry
    assert [d["nodeType"] for d in docs] == ["n8n-nodes-base.httpRequest", "n8n-nodes-base.openAi"]
    assert docs[0]["content"].startswith("Makes HTTP requests")


@pytest.mark.asyncio
async def test_catalog_from_yaml_file(tmp_path, catalog):
    path = tmp_path / "catalog.yaml"
    path.write_text(yaml.safe_dump(catalog), encoding="utf-8")
    provider = CatalogDiscoveryProvider.from_file(path)

    res = await AutoValidator(provider).validate_discovery(
        "sentiment analysis web scraping", "employee review analysis"
    )
    assert res.passed
    assert res.results["risk_assessment"] == "low"
    assert len(res.results["docs_reviewed"]) == 2


def test_catalog_file_must_be_a_mapping(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="must contain a mapping"):
        CatalogDiscoveryProvider.from_file(path)
