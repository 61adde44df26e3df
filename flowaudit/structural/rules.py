# flowaudit/structural/rules.py
"""
Lint rules over node parameters.

A rule is a pure function `(node, policy) -> List[Issue]`. Rules never decide
whether a finding is fatal: they look up the configured severity from the
`LintPolicy` and the validator aggregates. New rules only need to be added to
`DEFAULT_RULES` (or passed to `run_rules`).
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Dict, Iterator, List, Sequence, Tuple

from flowaudit.config import LintPolicy
from flowaudit.errors import Issue

Rule = Callable[[Dict[str, Any], LintPolicy], List[Issue]]

EXPRESSION_RE = re.compile(r"\{\{[^}]+\}\}")

# parameter keys that hold program text rather than templated strings
CODE_KEYS = ("jsCode", "pythonCode")

_OPEN = "{{"
_CLOSE = "}}"


def serialized_parameters(node: Dict[str, Any]) -> str:
    return json.dumps(node.get("parameters") or {}, ensure_ascii=False)


def count_expressions(node: Dict[str, Any]) -> int:
    """Number of `{{ ... }}` spans in the serialized parameters."""
    return len(EXPRESSION_RE.findall(serialized_parameters(node)))


def _node_label(node: Dict[str, Any]) -> str:
    return str(node.get("name") or node.get("id") or "<unnamed>")


def _node_ref(node: Dict[str, Any]):
    nid = node.get("id")
    return None if nid in (None, "") else str(nid)


def _iter_strings(value: Any, path: str = "") -> Iterator[Tuple[str, str]]:
    """Yield (dotted path, string) for every string inside a parameter tree."""
    if isinstance(value, str):
        yield path, value
    elif isinstance(value, dict):
        for k, v in value.items():
            if k in CODE_KEYS:
                continue
            yield from _iter_strings(v, f"{path}.{k}" if path else str(k))
    elif isinstance(value, list):
        for i, v in enumerate(value):
            yield from _iter_strings(v, f"{path}[{i}]")


def _is_code_node(node: Dict[str, Any], policy: LintPolicy) -> bool:
    return node.get("type") in policy.code_node_types


def _js_code(node: Dict[str, Any]) -> str:
    code = (node.get("parameters") or {}).get("jsCode")
    return code if isinstance(code, str) else ""


# ---------- Rules ----------

def unterminated_expression(node: Dict[str, Any], policy: LintPolicy) -> List[Issue]:
    """Flag `{{` without a closing `}}` and empty `{{ }}` spans."""
    rule = "unterminated_expression"
    issues: List[Issue] = []
    for path, text in _iter_strings(node.get("parameters") or {}):
        pos = 0
        while True:
            start = text.find(_OPEN, pos)
            if start < 0:
                break
            end = text.find(_CLOSE, start + len(_OPEN))
            if end < 0:
                issues.append(Issue(
                    kind="ExpressionLintError",
                    message=f'Node "{_node_label(node)}" has an unterminated expression in parameter \'{path}\'',
                    severity=policy.severity_of(rule),
                    node=_node_ref(node),
                    rule=rule,
                ))
                break
            if not text[start + len(_OPEN):end].strip():
                issues.append(Issue(
                    kind="ExpressionLintError",
                    message=f'Node "{_node_label(node)}" has an empty expression in parameter \'{path}\'',
                    severity=policy.severity_of(rule),
                    node=_node_ref(node),
                    rule=rule,
                ))
            pos = end + len(_CLOSE)
    return issues


def deprecated_data_access(node: Dict[str, Any], policy: LintPolicy) -> List[Issue]:
    rule = "deprecated_data_access"
    if not _is_code_node(node, policy):
        return []
    code = _js_code(node)
    issues: List[Issue] = []
    for idiom, replacement in policy.deprecated_idioms.items():
        if code and idiom in code:
            issues.append(Issue(
                kind="ExpressionLintError",
                message=f"Code node \"{_node_label(node)}\" uses deprecated '{idiom}' - use '{replacement}' instead",
                severity=policy.severity_of(rule),
                node=_node_ref(node),
                rule=rule,
            ))
    return issues


def missing_return(node: Dict[str, Any], policy: LintPolicy) -> List[Issue]:
    rule = "missing_return"
    if not _is_code_node(node, policy):
        return []
    code = _js_code(node)
    if not code or "$input" in code or "return" in code:
        return []
    return [Issue(
        kind="ExpressionLintError",
        message=f"Code node \"{_node_label(node)}\" may not return data properly - ensure 'return' statement exists",
        severity=policy.severity_of(rule),
        node=_node_ref(node),
        rule=rule,
    )]


DEFAULT_RULES: Tuple[Rule, ...] = (
    unterminated_expression,
    deprecated_data_access,
    missing_return,
)


def run_rules(
    nodes: Sequence[Dict[str, Any]],
    policy: LintPolicy,
    rules: Sequence[Rule] = DEFAULT_RULES,
) -> List[Issue]:
    """Apply every rule to every node, in node order then rule order."""
    issues: List[Issue] = []
    for node in nodes:
        for rule in rules:
            issues.extend(rule(node, policy))
    return issues
