# flowaudit/models.py

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional

PHASES = ("discovery", "technical", "logic", "manifesto")


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class TestScenario:
    """Descriptive test case fed to the scenario runner."""

    __test__ = False  # keep pytest from collecting this class

    name: str
    description: str = ""
    input: Dict[str, Any] = field(default_factory=dict)
    expected_output: Any = None
    expected_behavior: Optional[str] = None
    timeout_ms: int = 30000

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TestScenario":
        if not data.get("name"):
            raise ValueError(f"Test scenario without a name: {dict(data)}")
        return cls(
            name=str(data["name"]),
            description=str(data.get("description", "")),
            input=dict(data.get("input") or {}),
            expected_output=data.get("expected_output", data.get("expectedOutput")),
            expected_behavior=data.get("expected_behavior", data.get("expectedBehavior")),
            timeout_ms=int(data.get("timeout_ms", data.get("timeout", 30000))),
        )

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ScenarioResult:
    name: str
    passed: bool
    result: Any = None
    error: Optional[str] = None
    duration_ms: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PhaseResult:
    """Outcome of a single phase in a single run."""

    phase: str
    passed: bool
    results: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    message: str = ""
    report: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase,
            "passed": self.passed,
            "results": self.results,
            "error": self.error,
            "message": self.message,
        }


@dataclass
class ValidationRun:
    """Per-run record of phase results, keyed by phase name."""

    phases: Dict[str, PhaseResult] = field(default_factory=dict)
    started_at: str = field(default_factory=utc_now)

    def record(self, result: PhaseResult) -> PhaseResult:
        self.phases[result.phase] = result
        return result

    def get(self, phase: str) -> Optional[PhaseResult]:
        return self.phases.get(phase)

    def passed(self, phase: str) -> bool:
        res = self.phases.get(phase)
        return bool(res and res.passed)

    @property
    def all_passed(self) -> bool:
        return all(self.passed(p) for p in PHASES)

    def __iter__(self) -> Iterator[PhaseResult]:
        return (self.phases[p] for p in PHASES if p in self.phases)

    def reports(self) -> List[str]:
        return [r.report for r in self]
