# flowaudit/orchestrator.py
"""
Four-phase workflow audit: discovery, technical (structural validation),
logic (test scenarios) and manifesto compliance.

Each phase returns its own PhaseResult; `run` threads them through an
explicit ValidationRun record, so nothing from a previous run can leak into
the next one. A failing phase is recorded and logged, and the remaining
phases still run.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Mapping, Optional, Sequence

from flowaudit.compliance.scorer import score
from flowaudit.config import MAX_SCORE, AuditPolicy
from flowaudit.discovery import DiscoveryProvider
from flowaudit.errors import DiscoveryError, FlowAuditError, ScenarioFailureError
from flowaudit.models import (
    PHASES,
    PhaseResult,
    ScenarioResult,
    TestScenario,
    ValidationRun,
    utc_now,
)
from flowaudit.reporting.text import STRATEGIC_QUESTIONS, render_phase
from flowaudit.scenarios import ScenarioRunner, StubScenarioRunner, coerce_scenarios, default_scenarios
from flowaudit.structural.checker import RawWorkflow, parse_workflow, validate
from flowaudit.utils.logger import get_logger

logger = get_logger("orchestrator")

EMPTY_WORKFLOW: Dict[str, Any] = {"nodes": [], "connections": {}}


def assess_risk(node_count: int, template_count: int) -> str:
    if node_count >= 3 and template_count >= 1:
        return "low"
    if template_count == 0:
        return "high"
    return "medium"


class AutoValidator:
    def __init__(
        self,
        discovery: DiscoveryProvider,
        scenario_runner: Optional[ScenarioRunner] = None,
        policy: Optional[AuditPolicy] = None,
    ):
        self.discovery = discovery
        self.scenario_runner = scenario_runner or StubScenarioRunner()
        self.policy = policy or AuditPolicy()

    # ---------- Phase 1: discovery ----------

    async def validate_discovery(self, query: str, use_case: str) -> PhaseResult:
        logger.info("Starting discovery phase (query=%r, use_case=%r)", query, use_case)
        results: Dict[str, Any] = {
            "timestamp": utc_now(),
            "search_query": query,
            "use_case": use_case,
            "nodes_found": [],
            "templates_found": [],
            "docs_reviewed": [],
            "risk_assessment": "unknown",
        }
        try:
            results["nodes_found"] = list(await self.discovery.search_nodes(query))
            results["templates_found"] = list(await self.discovery.search_templates(use_case))
            results["docs_reviewed"] = list(await self.discovery.get_documentation(results["nodes_found"]))

            if not results["nodes_found"]:
                raise DiscoveryError("Discovery incomplete - no relevant nodes found")

            results["risk_assessment"] = assess_risk(
                len(results["nodes_found"]), len(results["templates_found"])
            )
            if not results["templates_found"]:
                logger.warning("No templates found - building from scratch (higher risk)")
        except (FlowAuditError, NotImplementedError) as e:
            logger.error("Discovery phase failed: %s", e)
            results["error_type"] = type(e).__name__
            return self._finish(PhaseResult("discovery", False, results, error=str(e)))
        except Exception as e:
            # provider transport failures (network, timeouts) fail this phase only
            logger.exception("Discovery provider error: %s", e)
            results["error_type"] = type(e).__name__
            return self._finish(PhaseResult("discovery", False, results, error=str(e)))

        logger.info("Discovery phase complete (risk=%s)", results["risk_assessment"])
        return self._finish(PhaseResult(
            "discovery", True, results, message="Discovery phase completed successfully"
        ))

    # ---------- Phase 2: technical ----------

    def validate_technical(self, raw: RawWorkflow) -> PhaseResult:
        logger.info("Starting technical phase")
        outcome = validate(raw, self.policy.lint)
        results: Dict[str, Any] = {
            "timestamp": utc_now(),
            "checks": dict(outcome.checks),
            "node_count": outcome.stats.get("node_count", 0),
            "connection_count": outcome.stats.get("connection_count", 0),
            "expression_count": outcome.stats.get("expression_count", 0),
            "edge_count": outcome.stats.get("edge_count", 0),
            "isolated_nodes": outcome.stats.get("isolated_nodes", []),
            "errors": [str(i) for i in outcome.errors],
            "warnings": [str(i) for i in outcome.warnings],
        }
        for w in outcome.warnings:
            logger.warning("%s", w)
        try:
            outcome.raise_for_errors()
        except FlowAuditError as e:
            logger.error("Technical phase failed (%s): %s", type(e).__name__, e)
            results["error_type"] = type(e).__name__
            return self._finish(PhaseResult("technical", False, results, error=str(e)))

        logger.info(
            "Technical phase complete (%d nodes, %d connections, %d expressions)",
            results["node_count"], results["connection_count"], results["expression_count"],
        )
        return self._finish(PhaseResult(
            "technical", True, results, message="Technical validation completed successfully"
        ))

    # ---------- Phase 3: logic ----------

    async def _run_scenario(self, workflow: Mapping[str, Any], scenario: TestScenario) -> ScenarioResult:
        started = time.monotonic()
        try:
            return await asyncio.wait_for(
                self.scenario_runner.run(workflow, scenario),
                timeout=scenario.timeout_ms / 1000.0,
            )
        except asyncio.TimeoutError:
            return ScenarioResult(
                name=scenario.name,
                passed=False,
                error=f"timed out after {scenario.timeout_ms}ms",
                duration_ms=int((time.monotonic() - started) * 1000),
            )
        except Exception as e:
            # a broken runner fails this scenario only
            return ScenarioResult(name=scenario.name, passed=False, error=str(e), duration_ms=0)

    async def validate_logic(
        self,
        workflow: Mapping[str, Any],
        custom_scenarios: Sequence[Any] = (),
    ) -> PhaseResult:
        logger.info("Starting logic phase")
        try:
            scenarios = default_scenarios(workflow) + coerce_scenarios(custom_scenarios)
        except (ValueError, TypeError) as e:
            logger.error("Logic phase failed: invalid test scenario (%s)", e)
            results = {
                "timestamp": utc_now(),
                "total_tests": 0,
                "passed_tests": 0,
                "failed_tests": 0,
                "scenarios": [],
                "test_results": [],
                "error_type": type(e).__name__,
            }
            return self._finish(PhaseResult(
                "logic", False, results, error=f"Invalid test scenario: {e}"
            ))

        results: Dict[str, Any] = {
            "timestamp": utc_now(),
            "total_tests": len(scenarios),
            "passed_tests": 0,
            "failed_tests": 0,
            "scenarios": [s.as_dict() for s in scenarios],
            "test_results": [],
        }

        for scenario in scenarios:
            logger.info("Running test: %s", scenario.name)
            res = await self._run_scenario(workflow, scenario)
            results["test_results"].append(res.as_dict())
            if res.passed:
                results["passed_tests"] += 1
                logger.info("%s: passed", scenario.name)
            else:
                results["failed_tests"] += 1
                logger.error("%s: failed - %s", scenario.name, res.error)

        if results["failed_tests"]:
            err = ScenarioFailureError(
                f"{results['failed_tests']} out of {results['total_tests']} tests failed"
            )
            logger.error("Logic phase failed: %s", err)
            results["error_type"] = type(err).__name__
            return self._finish(PhaseResult("logic", False, results, error=str(err)))

        logger.info("Logic phase complete")
        return self._finish(PhaseResult(
            "logic", True, results, message="Logic testing completed successfully"
        ))

    # ---------- Phase 4: compliance ----------

    def validate_compliance(
        self,
        workflow: Mapping[str, Any],
        prior: Mapping[str, PhaseResult],
        context_documents: Optional[Mapping[str, Any]] = None,
    ) -> PhaseResult:
        logger.info("Starting manifesto compliance audit")
        result = score(workflow, prior, context_documents, self.policy.compliance)
        results = {"timestamp": utc_now(), **result.as_dict()}
        message = f"Manifesto compliance: {result.score}/{MAX_SCORE}"
        if result.passed:
            logger.info(message)
        else:
            logger.warning("Manifesto compliance issues found (%s)", message)
        return self._finish(PhaseResult("manifesto", result.passed, results, message=message))

    # ---------- Full run ----------

    async def run(
        self,
        raw: RawWorkflow,
        query: str,
        use_case: str,
        custom_scenarios: Sequence[Any] = (),
        context_documents: Optional[Mapping[str, Any]] = None,
    ) -> ValidationRun:
        run = ValidationRun()
        run.record(await self.validate_discovery(query, use_case))

        technical = run.record(self.validate_technical(raw))
        workflow = parse_workflow(raw) if technical.results["checks"].get("workflow_structure") else EMPTY_WORKFLOW

        run.record(await self.validate_logic(workflow, custom_scenarios))
        run.record(self.validate_compliance(workflow, run.phases, context_documents))
        return run

    @staticmethod
    def _finish(result: PhaseResult) -> PhaseResult:
        result.report = render_phase(result)
        return result


def build_comprehensive_report(run: ValidationRun) -> Dict[str, Any]:
    all_passed = run.all_passed
    return {
        "timestamp": utc_now(),
        "overall_status": "PASSED" if all_passed else "FAILED",
        "phases": {p: (run.phases[p].as_dict() if p in run.phases else None) for p in PHASES},
        "summary": {p: "PASSED" if run.passed(p) else "FAILED" for p in PHASES},
        "strategic_checkpoints": [STRATEGIC_QUESTIONS[p] for p in PHASES],
        "next_steps": (
            ["Ready for deployment", "Consider production monitoring setup"]
            if all_passed
            else ["Address failed validations", "Re-run auto-validation after fixes"]
        ),
    }
