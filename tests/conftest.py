import copy

import pytest


SAMPLE_WORKFLOW = {
    "name": "Sample Sentiment Scraper",
    "nodes": [
        {
            "id": "schedule-trigger",
            "name": "Daily Schedule",
            "type": "n8n-nodes-base.scheduleTrigger",
            "parameters": {"rule": {"interval": [{"field": "hours", "hoursInterval": 24}]}},
            "position": [240, 300],
        },
        {
            "id": "http-request",
            "name": "Fetch Reviews",
            "type": "n8n-nodes-base.httpRequest",
            "parameters": {
                "method": "GET",
                "url": "https://api.example.com/reviews",
                "options": {"timeout": 30000, "retry": {"enabled": True, "maxTries": 3}},
            },
            "position": [460, 300],
        },
        {
            "id": "openai-analysis",
            "name": "Sentiment Analysis",
            "type": "n8n-nodes-base.openAi",
            "parameters": {
                "resource": "chat",
                "operation": "complete",
                "prompt": "Analyze sentiment: {{ $json.review_text }}",
            },
            "position": [680, 300],
        },
    ],
    "connections": {
        "schedule-trigger": {"main": [[{"node": "http-request", "type": "main", "index": 0}]]},
        "http-request": {"main": [[{"node": "openai-analysis", "type": "main", "index": 0}]]},
    },
    "settings": {"executionOrder": "v1"},
}

CATALOG = {
    "nodes": [
        {"name": "HTTP Request", "nodeType": "n8n-nodes-base.httpRequest",
         "description": "Fetch data from any REST API", "keywords": ["scraping", "web", "api"]},
        {"name": "OpenAI", "nodeType": "n8n-nodes-base.openAi",
         "description": "Sentiment analysis and text completion", "keywords": ["sentiment", "llm"]},
        {"name": "HTML Extract", "nodeType": "n8n-nodes-base.html",
         "description": "Extract data from web pages", "keywords": ["scraping", "html"]},
        {"name": "Postgres", "nodeType": "n8n-nodes-base.postgres",
         "description": "Store rows in a database", "keywords": ["sql"]},
    ],
    "templates": [
        {"name": "Review sentiment digest", "description": "Employee review analysis with sentiment scoring",
         "keywords": ["review", "sentiment"]},
    ],
    "documentation": {
        "n8n-nodes-base.httpRequest": "Makes HTTP requests and returns the response body.",
        "n8n-nodes-base.openAi": "Calls the OpenAI API.",
    },
}


class FakeDiscovery:
    """In-memory provider satisfying the DiscoveryProvider protocol."""

    def __init__(self, nodes=None, templates=None, docs=None):
        self.nodes = nodes if nodes is not None else [{"name": "HTTP Request"}, {"name": "OpenAI"}, {"name": "Code"}]
        self.templates = templates if templates is not None else [{"name": "Review digest"}]
        self.docs = docs
        self.calls = []

    async def search_nodes(self, query):
        self.calls.append(("search_nodes", query))
        return list(self.nodes)

    async def search_templates(self, use_case):
        self.calls.append(("search_templates", use_case))
        return list(self.templates)

    async def get_documentation(self, nodes):
        self.calls.append(("get_documentation", len(nodes)))
        if self.docs is not None:
            return list(self.docs)
        return [{"name": n["name"], "content": "docs"} for n in nodes]


@pytest.fixture
def sample_workflow():
    return copy.deepcopy(SAMPLE_WORKFLOW)


@pytest.fixture
def catalog():
    return copy.deepcopy(CATALOG)


@pytest.fixture
def fake_discovery():
    return FakeDiscovery()


@pytest.fixture
def context_docs():
    return {
        "requirements.md": "Business requirements documented",
        "architecture.md": "System architecture documented",
    }
