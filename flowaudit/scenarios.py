# flowaudit/scenarios.py
from __future__ import annotations

from typing import Any, List, Mapping, Protocol, Sequence

from flowaudit.models import ScenarioResult, TestScenario
from flowaudit.utils.io import PathLike, load_any


class ScenarioRunner(Protocol):
    async def run(self, workflow: Mapping[str, Any], scenario: TestScenario) -> ScenarioResult:
        """Execute one scenario against the workflow."""
        ...


class StubScenarioRunner:
    """
    Placeholder executor: nothing is actually run.

    Every scenario passes; an `input.trigger == "error"` scenario reports the
    error path as handled. Durations are nominal, not measured.
    """

    async def run(self, workflow: Mapping[str, Any], scenario: TestScenario) -> ScenarioResult:
        if scenario.input.get("trigger") == "error":
            return ScenarioResult(
                name=scenario.name,
                passed=True,
                result="Error handled gracefully",
                duration_ms=1200,
            )
        return ScenarioResult(
            name=scenario.name,
            passed=True,
            result=scenario.expected_output or "Test completed successfully",
            duration_ms=800,
        )


def default_scenarios(workflow: Mapping[str, Any] | None = None) -> List[TestScenario]:
    return [
        TestScenario(
            name="Happy Path",
            description="Test normal workflow execution with valid data",
            input={"test": "data"},
            expected_output={"success": True},
            timeout_ms=30000,
        ),
        TestScenario(
            name="Empty Input",
            description="Test workflow behavior with empty input",
            input={},
            expected_behavior="graceful handling",
            timeout_ms=10000,
        ),
        TestScenario(
            name="Error Recovery",
            description="Test workflow error handling and recovery",
            input={"trigger": "error"},
            expected_behavior="error handling activated",
            timeout_ms=15000,
        ),
    ]


def coerce_scenarios(items: Sequence[Any]) -> List[TestScenario]:
    out: List[TestScenario] = []
    for item in items:
        if isinstance(item, TestScenario):
            out.append(item)
        elif isinstance(item, Mapping):
            out.append(TestScenario.from_dict(item))
        else:
            raise ValueError(f"Cannot build a test scenario from {item!r}")
    return out


def load_scenarios(path: PathLike) -> List[TestScenario]:
    """Load a YAML/JSON list of scenarios (or a mapping with a `scenarios` list)."""
    data = load_any(path)
    if isinstance(data, Mapping):
        data = data.get("scenarios")
    if not isinstance(data, list):
        raise ValueError(f"Scenario file {path} must contain a list of scenarios")
    return coerce_scenarios(data)
