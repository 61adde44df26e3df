# flowaudit/reporting/text.py
"""Console renderings of phase results and the comprehensive report."""

from typing import Any, Dict, List

from flowaudit.models import PHASES, PhaseResult

OK = "✅"
FAIL = "❌"
WARN = "⚠️"

STRATEGIC_QUESTIONS = {
    "discovery": "Does this discovery approach align with your business goals?",
    "technical": "Does this technical approach seem reasonable?",
    "logic": "Do these test results meet your business requirements?",
    "manifesto": "Are you satisfied with manifesto compliance?",
}

PHASE_TITLES = {
    "discovery": "Discovery Phase Auto-Validation",
    "technical": "Technical Auto-Validation",
    "logic": "Logic Auto-Testing",
    "manifesto": "Manifesto Compliance Auto-Audit",
}


def _mark(flag: bool) -> str:
    return OK if flag else FAIL


def _names(items: List[Dict[str, Any]]) -> str:
    return ", ".join(str(i.get("name", "?")) for i in items)


def _failure(result: PhaseResult) -> str:
    lines = [f"{FAIL} {PHASE_TITLES[result.phase]} Failed", f"  - Error: {result.error}"]
    return "\n".join(lines)


def _with_question(body: str, phase: str) -> str:
    return f"{body}\n\nStrategic Question: {STRATEGIC_QUESTIONS[phase]}\n"


def render_discovery(result: PhaseResult) -> str:
    if not result.passed:
        return _with_question(_failure(result), "discovery")
    r = result.results
    lines = [
        f"{OK} {PHASE_TITLES['discovery']} Complete",
        f"  - Searched for: \"{r.get('search_query', '')}\"",
        f"  - Found {len(r.get('nodes_found', []))} relevant nodes: {_names(r.get('nodes_found', []))}",
        f"  - Found {len(r.get('templates_found', []))} working templates: {_names(r.get('templates_found', []))}",
        f"  - Reviewed docs for all {len(r.get('docs_reviewed', []))} chosen nodes",
        f"  - Risk assessment: {r.get('risk_assessment', 'unknown')}",
    ]
    return _with_question("\n".join(lines), "discovery")


def render_technical(result: PhaseResult) -> str:
    r = result.results
    if not result.passed:
        body = _failure(result)
        checks = r.get("checks", {})
        if checks:
            body += "\n" + "\n".join(
                f"  - {name.replace('_', ' ').capitalize()}: {_mark(ok)}" for name, ok in checks.items()
            )
        return _with_question(body, "technical")
    lines = [
        f"{OK} {PHASE_TITLES['technical']} Complete",
        f"  - JSON syntax: {OK} Valid",
        f"  - Workflow structure: {OK} Valid ({r.get('node_count', 0)} nodes, {r.get('connection_count', 0)} connections)",
        f"  - Node connections: {OK} All nodes properly connected",
        f"  - Expressions: {OK} All {r.get('expression_count', 0)} expressions syntactically correct",
        f"  - Node configurations: {OK} All required fields populated",
    ]
    warnings = r.get("warnings") or []
    if warnings:
        lines.append(f"  - Warnings ({len(warnings)}):")
        lines.extend(f"      {WARN} {w}" for w in warnings)
    return _with_question("\n".join(lines), "technical")


def render_logic(result: PhaseResult) -> str:
    r = result.results
    tests = r.get("test_results", [])
    header = f"{OK} {PHASE_TITLES['logic']} Complete" if result.passed else _failure(result)
    lines = [header]
    for t in tests:
        status = "Passed" if t.get("passed") else f"Failed - {t.get('error')}"
        lines.append(f"  - {t.get('name')}: {_mark(bool(t.get('passed')))} {status} ({t.get('duration_ms', 0)}ms)")
    return _with_question("\n".join(lines), "logic")


def render_manifesto(result: PhaseResult) -> str:
    r = result.results
    if not r:
        return _with_question(_failure(result), "manifesto")
    head = OK if result.passed else WARN
    lines = [
        f"{head} {PHASE_TITLES['manifesto']} Complete",
        f"  - Discovery-first methodology: {_mark(r.get('discovery_first', False))}",
        f"  - Incremental development: {_mark(r.get('incremental_development', False))}",
        f"  - Documentation created: {_mark(r.get('documentation_present', False))}",
        f"  - Test scenarios: {_mark(r.get('test_scenarios_created', False))}",
        f"  - Error handling: {_mark(r.get('error_handling_implemented', False))}",
        f"  - Validation executed: {_mark(r.get('validation_executed', False))}",
        "",
        f"  Score: {r.get('score', 0)}/{r.get('max_score', 6)}",
    ]
    if r.get("missing_documents"):
        lines.append(f"  Missing documents: {', '.join(r['missing_documents'])}")
    return _with_question("\n".join(lines), "manifesto")


RENDERERS = {
    "discovery": render_discovery,
    "technical": render_technical,
    "logic": render_logic,
    "manifesto": render_manifesto,
}


def render_phase(result: PhaseResult) -> str:
    return RENDERERS[result.phase](result)


def banner(title: str, width: int = 60) -> str:
    return "\n".join(["=" * width, title, "=" * width])


def render_summary(report: Dict[str, Any]) -> str:
    """Flatten the comprehensive report into terminal text."""
    lines = [f"Overall Status: {report['overall_status']}", "", "Phase Results:"]
    for phase in PHASES:
        status = report["summary"].get(phase, "FAILED")
        lines.append(f"  {phase}: {OK + ' PASSED' if status == 'PASSED' else FAIL + ' FAILED'}")
    lines += ["", "Strategic Checkpoints:"]
    lines += [f"  {i}. {q}" for i, q in enumerate(report["strategic_checkpoints"], start=1)]
    lines += ["", "Next Steps:"]
    lines += [f"  {i}. {s}" for i, s in enumerate(report["next_steps"], start=1)]
    return "\n".join(lines)
