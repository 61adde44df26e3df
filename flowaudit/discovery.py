# flowaudit/discovery.py
"""Discovery collaborators.

The orchestrator depends on a `DiscoveryProvider` and never implements one
itself:
- DiscoveryProvider: Protocol every provider satisfies
- UnconfiguredDiscovery: placeholder that fails hard (no offline fallback)
- CatalogDiscoveryProvider: keyword search over a local node/template catalog
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional, Protocol

from flowaudit.errors import DiscoveryNotConfiguredError
from flowaudit.utils.io import PathLike, load_any
from flowaudit.utils.logger import get_logger

logger = get_logger("discovery")

Descriptor = Dict[str, Any]


class DiscoveryProvider(Protocol):
    """Lookup service for candidate nodes, templates and node documentation."""

    async def search_nodes(self, query: str) -> List[Descriptor]:
        """Return node descriptors relevant to `query` (each has a `name`)."""
        ...

    async def search_templates(self, use_case: str) -> List[Descriptor]:
        """Return workflow templates matching `use_case`."""
        ...

    async def get_documentation(self, nodes: List[Descriptor]) -> List[Descriptor]:
        """Return one documentation descriptor per node that has docs."""
        ...


class UnconfiguredDiscovery:
    """Stand-in used when no provider was injected. Every call fails."""

    async def search_nodes(self, query: str) -> List[Descriptor]:
        raise DiscoveryNotConfiguredError(
            "IMPLEMENTATION REQUIRED: no discovery provider configured for search_nodes"
        )

    async def search_templates(self, use_case: str) -> List[Descriptor]:
        raise DiscoveryNotConfiguredError(
            "IMPLEMENTATION REQUIRED: no discovery provider configured for search_templates"
        )

    async def get_documentation(self, nodes: List[Descriptor]) -> List[Descriptor]:
        raise DiscoveryNotConfiguredError(
            "IMPLEMENTATION REQUIRED: no discovery provider configured for get_documentation"
        )


_TOKEN_RE = re.compile(r"[a-z0-9]+")
# filler words that would match almost every catalog entry
_STOPWORDS = {"a", "an", "and", "the", "of", "for", "to", "in", "on", "with", "by"}


def _tokens(text: str) -> set:
    return {t for t in _TOKEN_RE.findall(text.lower()) if t not in _STOPWORDS}


def _haystack(entry: Mapping[str, Any]) -> set:
    parts = [
        str(entry.get("name", "")),
        str(entry.get("nodeType", "")),
        str(entry.get("description", "")),
        " ".join(str(k) for k in entry.get("keywords", []) or []),
    ]
    return _tokens(" ".join(parts))


class CatalogDiscoveryProvider:
    """
    Discovery backed by a static catalog:

        nodes:
          - {name: HTTP Request, nodeType: n8n-nodes-base.httpRequest, keywords: [api, rest]}
        templates:
          - {name: Daily report, description: ..., keywords: [schedule, email]}
        documentation:
          n8n-nodes-base.httpRequest: "Makes HTTP requests ..."

    An entry matches when it shares at least one keyword token with the
    query; results are ordered by overlap, then catalog order.
    """

    def __init__(self, catalog: Mapping[str, Any]):
        self.nodes: List[Descriptor] = list(catalog.get("nodes") or [])
        self.templates: List[Descriptor] = list(catalog.get("templates") or [])
        self.documentation: Dict[str, str] = dict(catalog.get("documentation") or {})

    @classmethod
    def from_file(cls, path: PathLike) -> "CatalogDiscoveryProvider":
        data = load_any(path)
        if not isinstance(data, Mapping):
            raise ValueError(f"Catalog file {path} must contain a mapping")
        return cls(data)

    @staticmethod
    def _rank(entries: List[Descriptor], text: str) -> List[Descriptor]:
        wanted = _tokens(text)
        scored = []
        for pos, entry in enumerate(entries):
            overlap = len(wanted & _haystack(entry))
            if overlap:
                scored.append((-overlap, pos, entry))
        return [e for _, _, e in sorted(scored, key=lambda t: (t[0], t[1]))]

    async def search_nodes(self, query: str) -> List[Descriptor]:
        found = self._rank(self.nodes, query)
        logger.debug("catalog search_nodes(%r) -> %d hits", query, len(found))
        return found

    async def search_templates(self, use_case: str) -> List[Descriptor]:
        found = self._rank(self.templates, use_case)
        logger.debug("catalog search_templates(%r) -> %d hits", use_case, len(found))
        return found

    async def get_documentation(self, nodes: List[Descriptor]) -> List[Descriptor]:
        docs: List[Descriptor] = []
        for node in nodes:
            key: Optional[str] = node.get("nodeType") or node.get("name")
            text = self.documentation.get(key) if key else None
            if text:
                docs.append({"name": node.get("name", key), "nodeType": key, "content": text})
        return docs
