# flowaudit/errors.py
"""
Exception taxonomy for workflow audits.

Structural checks collect violations as `Issue` records first; the class
names below double as the issue `kind`, so an aggregated failure can be
raised as the exception type of its first error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Type

ERROR = "error"
WARNING = "warning"


class FlowAuditError(Exception):
    """Base class for every audit failure."""


class ParseError(FlowAuditError):
    """Serialized workflow text is not valid JSON."""


class StructureError(FlowAuditError):
    """Required top-level collections are missing or malformed."""


class DanglingSourceError(FlowAuditError):
    """A connection source names a node that does not exist."""


class DanglingTargetError(FlowAuditError):
    """A connection target names a node that does not exist."""


class MissingFieldError(FlowAuditError):
    """A node lacks one of its required fields."""


class DuplicateNodeIdError(FlowAuditError):
    """Two or more nodes share the same id."""


class ExpressionLintError(FlowAuditError):
    """A parameter expression or code body tripped a lint rule."""


class DiscoveryError(FlowAuditError):
    """Discovery finished without any usable node."""


class ScenarioFailureError(FlowAuditError):
    """At least one test scenario failed."""


class DiscoveryNotConfiguredError(FlowAuditError, NotImplementedError):
    """A mandatory discovery collaborator has no backing implementation."""


ERROR_TYPES: Dict[str, Type[FlowAuditError]] = {
    cls.__name__: cls
    for cls in (
        ParseError,
        StructureError,
        DanglingSourceError,
        DanglingTargetError,
        MissingFieldError,
        DuplicateNodeIdError,
        ExpressionLintError,
    )
}


@dataclass(frozen=True)
class Issue:
    kind: str
    message: str
    severity: str = ERROR
    node: Optional[str] = None
    rule: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR

    def exception(self) -> FlowAuditError:
        return ERROR_TYPES.get(self.kind, FlowAuditError)(self.message)

    def as_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": self.message,
            "severity": self.severity,
            "node": self.node,
            "rule": self.rule,
        }

    def __str__(self) -> str:
        return f"[{self.kind}] {self.message}"
