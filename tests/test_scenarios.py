import json

import pytest

from flowaudit.models import TestScenario
from flowaudit.scenarios import StubScenarioRunner, coerce_scenarios, default_scenarios, load_scenarios


def test_default_scenarios():
    names = [(s.name, s.timeout_ms) for s in default_scenarios()]
    assert names == [("Happy Path", 30000), ("Empty Input", 10000), ("Error Recovery", 15000)]


def test_scenario_from_camel_case_keys():
    s = TestScenario.from_dict({
        "name": "Rate limit",
        "expectedBehavior": "backoff",
        "expectedOutput": {"ok": True},
        "timeout": 2000,
    })
    assert s.expected_behavior == "backoff"
    assert s.expected_output == {"ok": True}
    assert s.timeout_ms == 2000
    assert s.input == {}


def test_unnamed_scenario_is_rejected():
    with pytest.raises(ValueError, match="without a name"):
        coerce_scenarios([{"input": {}}])
    with pytest.raises(ValueError):
        coerce_scenarios(["Happy Path"])


def test_load_scenarios_from_json_list(tmp_path):
    path = tmp_path / "scenarios.json"
    path.write_text(json.dumps([{"name": "A"}, {"name": "B", "timeout_ms": 5}]), encoding="utf-8")
    loaded = load_scenarios(path)
    assert [s.name for s in loaded] == ["A", "B"]
    assert loaded[1].timeout_ms == 5


def test_load_scenarios_rejects_other_shapes(tmp_path):
    path = tmp_path / "scenarios.yaml"
    path.write_text("name: lonely\n", encoding="utf-8")
    with pytest.raises(ValueError, match="list of scenarios"):
        load_scenarios(path)


@pytest.mark.asyncio
async def test_stub_runner_results(sample_workflow):
    stub = StubScenarioRunner()
    happy, empty, error = default_scenarios()
    r = await stub.run(sample_workflow, happy)
    assert (r.passed, r.result, r.duration_ms) == (True, {"success": True}, 800)
    r = await stub.run(sample_workflow, empty)
    assert r.result == "Test completed successfully"
    r = await stub.run(sample_workflow, error)
    assert (r.passed, r.result, r.duration_ms) == (True, "Error handled gracefully", 1200)
