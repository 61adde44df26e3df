# flowaudit/compliance/scorer.py

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from flowaudit.config import MAX_SCORE, PASS_SCORE, CompliancePolicy
from flowaudit.models import PhaseResult

PREDICATES = (
    "discovery_first",
    "incremental_development",
    "documentation_present",
    "test_scenarios_created",
    "error_handling_implemented",
    "validation_executed",
)


@dataclass
class ComplianceResult:
    discovery_first: bool = False
    incremental_development: bool = False
    documentation_present: bool = False
    test_scenarios_created: bool = False
    error_handling_implemented: bool = False
    validation_executed: bool = False
    score: int = 0
    max_score: int = MAX_SCORE
    passed: bool = False
    missing_documents: List[str] = field(default_factory=list)
    node_count: int = 0
    scenario_count: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _passed(prior: Mapping[str, PhaseResult], phase: str) -> bool:
    res = prior.get(phase)
    return bool(res is not None and res.passed)


def has_error_handling(node: Mapping[str, Any]) -> bool:
    """Error routing, continue-on-fail, or a retry option in parameters.options."""
    if node.get("onError") or node.get("continueOnFail"):
        return True
    params = node.get("parameters")
    options = params.get("options") if isinstance(params, Mapping) else None
    return bool(isinstance(options, Mapping) and options.get("retry"))


def scenario_count(prior: Mapping[str, PhaseResult]) -> int:
    logic = prior.get("logic")
    if logic is None:
        return 0
    return int(logic.results.get("total_tests", 0) or 0)


def score(
    workflow: Mapping[str, Any],
    prior: Mapping[str, PhaseResult],
    context_documents: Optional[Mapping[str, Any]] = None,
    policy: Optional[CompliancePolicy] = None,
) -> ComplianceResult:
    """
    Score a workflow against the six compliance predicates.

    Pure aggregation over already-computed state: `prior` maps phase name to
    the PhaseResult of this run, `context_documents` maps a document name to
    a presence flag (any truthy value counts as present).
    """
    policy = policy or CompliancePolicy()
    docs = context_documents or {}
    nodes = workflow.get("nodes") if isinstance(workflow, Mapping) else None
    nodes = nodes if isinstance(nodes, list) else []

    res = ComplianceResult()
    res.node_count = len(nodes)
    res.scenario_count = scenario_count(prior)

    res.discovery_first = _passed(prior, "discovery")
    res.incremental_development = res.node_count <= policy.max_nodes
    res.missing_documents = [d for d in policy.required_documents if not docs.get(d)]
    res.documentation_present = not res.missing_documents
    res.test_scenarios_created = res.scenario_count >= policy.min_scenarios
    res.error_handling_implemented = any(
        has_error_handling(n) for n in nodes if isinstance(n, Mapping)
    )
    res.validation_executed = all(
        _passed(prior, p) for p in ("discovery", "technical", "logic")
    )

    res.score = sum(1 for p in PREDICATES if getattr(res, p))
    res.passed = res.score >= PASS_SCORE
    return res
