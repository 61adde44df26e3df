from flowaudit.models import PhaseResult
from flowaudit.reporting.text import banner, render_phase, render_summary


def test_failed_phase_shows_error_and_question():
    res = PhaseResult("discovery", False, {}, error="IMPLEMENTATION REQUIRED: nope")
    text = render_phase(res)
    assert text.startswith("❌ Discovery Phase Auto-Validation Failed")
    assert "  - Error: IMPLEMENTATION REQUIRED: nope" in text
    assert text.rstrip().endswith("Does this discovery approach align with your business goals?")


def test_failed_technical_lists_checks():
    res = PhaseResult(
        "technical", False,
        {"checks": {"json_syntax": True, "workflow_structure": False}},
        error="Invalid workflow structure: missing or invalid nodes array",
    )
    text = render_phase(res)
    assert "  - Json syntax: ✅" in text
    assert "  - Workflow structure: ❌" in text


def test_technical_warnings_are_listed():
    res = PhaseResult(
        "technical", True,
        {"node_count": 1, "connection_count": 0, "expression_count": 0,
         "warnings": ["[ExpressionLintError] Code node \"C\" has no return"]},
    )
    text = render_phase(res)
    assert "Warnings (1):" in text
    assert "Code node \"C\" has no return" in text


def test_logic_lines_per_scenario():
    res = PhaseResult("logic", False, {"test_results": [
        {"name": "Happy Path", "passed": True, "duration_ms": 800},
        {"name": "Slow", "passed": False, "error": "timed out after 50ms", "duration_ms": 51},
    ]}, error="1 out of 2 tests failed")
    text = render_phase(res)
    assert "  - Happy Path: ✅ Passed (800ms)" in text
    assert "  - Slow: ❌ Failed - timed out after 50ms (51ms)" in text


def test_manifesto_shows_score_and_missing_docs():
    res = PhaseResult("manifesto", False, {
        "discovery_first": True, "incremental_development": True, "documentation_present": False,
        "test_scenarios_created": True, "error_handling_implemented": True, "validation_executed": False,
        "score": 4, "max_score": 6, "missing_documents": ["architecture.md"],
    })
    text = render_phase(res)
    assert text.startswith("⚠️ Manifesto Compliance Auto-Audit Complete")
    assert "  - Documentation created: ❌" in text
    assert "  Score: 4/6" in text
    assert "  Missing documents: architecture.md" in text


def test_banner():
    assert banner("X", width=3) == "===\nX\n==="


def test_summary_text():
    report = {
        "overall_status": "FAILED",
        "summary": {"discovery": "FAILED", "technical": "PASSED", "logic": "PASSED", "manifesto": "FAILED"},
        "strategic_checkpoints": ["Q1?", "Q2?"],
        "next_steps": ["Address failed validations"],
    }
    text = render_summary(report)
    assert text.splitlines()[0] == "Overall Status: FAILED"
    assert "  discovery: ❌ FAILED" in text
    assert "  technical: ✅ PASSED" in text
    assert "  2. Q2?" in text
    assert "  1. Address failed validations" in text
