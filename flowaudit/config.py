# flowaudit/config.py
"""
Audit policy: the tunable knobs behind the structural lint rules and the
compliance score. Defaults reproduce the stock n8n audit; a YAML/JSON policy
file can override any of them, e.g.

    compliance:
      max_nodes: 80
      required_documents: [requirements.md, architecture.md, runbook.md]
    lint:
      reference_key: name
      severity:
        missing_return: warning
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from flowaudit.errors import ERROR, WARNING
from flowaudit.utils.io import PathLike, load_any

# Fixed verdict constants of the compliance score (not part of the policy).
MAX_SCORE = 6
PASS_SCORE = 5

REFERENCE_KEYS = ("id", "name")


@dataclass(frozen=True)
class CompliancePolicy:
    max_nodes: int = 50
    required_documents: Tuple[str, ...] = ("requirements.md", "architecture.md")
    min_scenarios: int = 3


@dataclass(frozen=True)
class LintPolicy:
    code_node_types: Tuple[str, ...] = ("n8n-nodes-base.code",)
    # deprecated idiom -> suggested replacement
    deprecated_idioms: Mapping[str, str] = field(
        default_factory=lambda: {"items[0].json": "$input.all()[0].json"}
    )
    # rule name -> "error" | "warning"; rules not listed are errors
    severity: Mapping[str, str] = field(default_factory=dict)
    reference_key: str = "id"

    def severity_of(self, rule: str) -> str:
        return self.severity.get(rule, ERROR)


@dataclass(frozen=True)
class AuditPolicy:
    compliance: CompliancePolicy = field(default_factory=CompliancePolicy)
    lint: LintPolicy = field(default_factory=LintPolicy)


def _overlay(base, values: Mapping[str, Any], section: str):
    known = {f.name for f in fields(base)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown {section} policy keys: {', '.join(unknown)}")
    cleaned: Dict[str, Any] = {}
    for k, v in values.items():
        if isinstance(getattr(base, k), tuple):
            v = tuple(v)
        elif isinstance(getattr(base, k), Mapping):
            v = dict(v or {})
        cleaned[k] = v
    return replace(base, **cleaned)


def policy_from_dict(data: Optional[Mapping[str, Any]]) -> AuditPolicy:
    """Build an AuditPolicy from a plain mapping, starting from defaults."""
    data = dict(data or {})
    unknown = sorted(set(data) - {"compliance", "lint"})
    if unknown:
        raise ValueError(f"Unknown policy sections: {', '.join(unknown)}")

    compliance = _overlay(CompliancePolicy(), data.get("compliance") or {}, "compliance")
    lint = _overlay(LintPolicy(), data.get("lint") or {}, "lint")

    if lint.reference_key not in REFERENCE_KEYS:
        raise ValueError(
            f"Invalid reference_key '{lint.reference_key}'. "
            f"Choose one of: {', '.join(REFERENCE_KEYS)}"
        )
    for rule, level in lint.severity.items():
        if level not in (ERROR, WARNING):
            raise ValueError(f"Invalid severity '{level}' for rule '{rule}'")
    if compliance.max_nodes < 0 or compliance.min_scenarios < 0:
        raise ValueError("max_nodes and min_scenarios must be non-negative")

    return AuditPolicy(compliance=compliance, lint=lint)


def load_policy(path: Optional[PathLike]) -> AuditPolicy:
    """Load a policy file (.yaml/.yml/.json); None gives the defaults."""
    if path is None:
        return AuditPolicy()
    data = load_any(path)
    if data is not None and not isinstance(data, Mapping):
        raise ValueError(f"Policy file {path} must contain a mapping")
    return policy_from_dict(data)
