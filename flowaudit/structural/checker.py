# flowaudit/structural/checker.py

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from jsonschema import Draft7Validator

from flowaudit.config import LintPolicy
from flowaudit.errors import Issue, ParseError, StructureError
from flowaudit.structural.rules import DEFAULT_RULES, Rule, count_expressions, run_rules
from flowaudit.structural.schema import REQUIRED_NODE_FIELDS, WORKFLOW_SHAPE_SCHEMA
from flowaudit.utils.graph import build_graph, graph_stats, iter_connection_targets

RawWorkflow = Union[str, bytes, bytearray, Mapping[str, Any]]

_SHAPE_VALIDATOR = Draft7Validator(WORKFLOW_SHAPE_SCHEMA)


@dataclass
class ValidationOutcome:
    """
    Result of a structural validation run.

    `issues` keeps every finding in check order (connections, node fields,
    expressions); only error-severity issues make the outcome fail.
    """
    issues: List[Issue] = field(default_factory=list)
    workflow: Optional[Dict[str, Any]] = None
    stats: Dict[str, Any] = field(default_factory=dict)
    # which stages completed without error
    checks: Dict[str, bool] = field(default_factory=dict)

    @property
    def errors(self) -> List[Issue]:
        return [i for i in self.issues if i.is_error]

    @property
    def warnings(self) -> List[Issue]:
        return [i for i in self.issues if not i.is_error]

    @property
    def passed(self) -> bool:
        return not self.errors

    def messages(self, kind: Optional[str] = None) -> List[str]:
        return [str(i) for i in self.issues if kind is None or i.kind == kind]

    def raise_for_errors(self) -> None:
        """Raise the first error's exception type carrying every error message."""
        errors = self.errors
        if not errors:
            return
        exc_type = type(errors[0].exception())
        raise exc_type(", ".join(i.message for i in errors))


# ---------- Stages ----------

def parse_workflow(raw: RawWorkflow) -> Dict[str, Any]:
    """Accept a mapping or its JSON text; anything unparsable is a ParseError."""
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"JSON syntax invalid: {e}") from e
    if not isinstance(raw, str):
        raise StructureError(
            f"Invalid workflow structure: expected an object or JSON text, got {type(raw).__name__}"
        )
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseError(f"JSON syntax invalid: {e}") from e
    if not isinstance(data, dict):
        raise StructureError("Invalid workflow structure: top level must be an object")
    return data


def check_shape(workflow: Dict[str, Any]) -> None:
    """Raise StructureError unless nodes is a list of objects and connections a mapping."""
    errors = sorted(
        _SHAPE_VALIDATOR.iter_errors(workflow),
        key=lambda e: (len(e.path), [str(p) for p in e.path]),
    )
    error = errors[0] if errors else None
    if error is None:
        return
    where = list(error.path)
    if not where and error.validator == "required":
        missing = "nodes" if "nodes" not in workflow else "connections"
        label = "nodes array" if missing == "nodes" else "connections object"
        raise StructureError(f"Invalid workflow structure: missing or invalid {label}")
    top = where[0] if where else ""
    if top == "nodes":
        raise StructureError(f"Invalid workflow structure: missing or invalid nodes array ({_path(where)}: {error.message})")
    if top == "connections":
        raise StructureError(f"Invalid workflow structure: missing or invalid connections object ({_path(where)}: {error.message})")
    raise StructureError(f"Invalid workflow structure: {error.message}")


def _path(parts: Sequence[Any]) -> str:
    out = ""
    for p in parts:
        out += f"[{p}]" if isinstance(p, int) else (f".{p}" if out else str(p))
    return out


def node_references(nodes: Sequence[Dict[str, Any]], reference_key: str = "id") -> set:
    return {
        str(n.get(reference_key))
        for n in nodes
        if n.get(reference_key) not in (None, "")
    }


def check_connections(workflow: Dict[str, Any], reference_key: str = "id") -> List[Issue]:
    """
    Referential integrity of every connection, collecting (not short-circuiting).
    One issue per dangling source key and per dangling target occurrence.
    """
    issues: List[Issue] = []
    known = node_references(workflow["nodes"], reference_key)
    connections = workflow["connections"]

    for src in connections:
        if str(src) not in known:
            issues.append(Issue(
                kind="DanglingSourceError",
                message=f"Connection source {src} does not exist",
                node=str(src),
            ))
        for _src, stream, out_idx, target in iter_connection_targets({src: connections[src]}):
            if not isinstance(target, dict) or target.get("node") in (None, ""):
                issues.append(Issue(
                    kind="StructureError",
                    message=f"Connection from {src} ({stream} output {out_idx}) has a malformed target: {target!r}",
                    node=str(src),
                ))
                continue
            dst = str(target["node"])
            if dst not in known:
                issues.append(Issue(
                    kind="DanglingTargetError",
                    message=f"Connection target {dst} does not exist",
                    node=dst,
                ))
    return issues


def check_node_fields(nodes: Sequence[Dict[str, Any]]) -> List[Issue]:
    """One MissingFieldError per absent/empty required field, plus duplicate ids."""
    issues: List[Issue] = []
    seen_ids = set()
    for pos, node in enumerate(nodes):
        nid = node.get("id")
        has_id = nid not in (None, "")
        label = str(nid) if has_id else f"#{pos}"
        for fname in REQUIRED_NODE_FIELDS:
            if node.get(fname) not in (None, ""):
                continue
            issues.append(Issue(
                kind="MissingFieldError",
                message=f"Node {label} missing required {fname} field",
                node=str(nid) if has_id else None,
            ))
        if has_id:
            if str(nid) in seen_ids:
                issues.append(Issue(
                    kind="DuplicateNodeIdError",
                    message=f"Node id {nid} is used by more than one node",
                    node=str(nid),
                ))
            seen_ids.add(str(nid))
    return issues


# ---------- Public API ----------

def validate(
    raw: RawWorkflow,
    policy: Optional[LintPolicy] = None,
    rules: Sequence[Rule] = DEFAULT_RULES,
) -> ValidationOutcome:
    """
    Structurally validate a workflow (mapping or JSON text).

    Parse and shape failures are fatal and end the run with a single issue.
    Otherwise connections, node fields and expressions are all checked and
    every violation is collected. The input is never mutated.
    """
    policy = policy or LintPolicy()
    outcome = ValidationOutcome()

    try:
        workflow = parse_workflow(raw)
        check_shape(workflow)
    except (ParseError, StructureError) as e:
        outcome.checks["json_syntax"] = not isinstance(e, ParseError)
        outcome.checks["workflow_structure"] = False
        outcome.issues.append(Issue(kind=type(e).__name__, message=str(e)))
        return outcome

    outcome.checks["json_syntax"] = True

    outcome.workflow = workflow
    outcome.checks["workflow_structure"] = True
    nodes = workflow["nodes"]

    conn_issues = check_connections(workflow, policy.reference_key)
    field_issues = check_node_fields(nodes)
    expr_issues = run_rules(nodes, policy, rules)

    outcome.issues.extend(conn_issues)
    outcome.issues.extend(field_issues)
    outcome.issues.extend(expr_issues)

    outcome.checks["node_connections"] = not any(i.is_error for i in conn_issues)
    outcome.checks["node_configurations"] = not any(i.is_error for i in field_issues)
    outcome.checks["expressions"] = not any(i.is_error for i in expr_issues)

    G = build_graph(workflow, policy.reference_key)
    outcome.stats = {
        "node_count": len(nodes),
        "connection_count": len(workflow["connections"]),
        "expression_count": sum(count_expressions(n) for n in nodes),
        **graph_stats(G),
    }
    return outcome
