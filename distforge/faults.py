"""
distforge error types with rich diagnostics.

Taxonomy::

    DistforgeError (base)
    ├── ConfigurationError
    │   ├── MissingBinaryError
    │   ├── DuplicateDistributionError
    │   ├── NotFoundError
    │   │   ├── DistributionNotFoundError
    │   │   └── StepNotFoundError
    │   ├── RegistryFrozenError
    │   ├── DuplicateStepError
    │   ├── StepCycleError
    │   └── SettingsError
    └── ExecutionError

Configuration errors are raised while the task graph is being synthesized
and always name the offending distribution or step. Execution errors belong
to the local executor; the synthesizer never raises them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(str, Enum):
    """Error severity; the CLI prints WARN in yellow and the rest as errors."""

    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class DistforgeError(Exception):
    """Base error for all distforge errors."""

    severity: Severity = Severity.ERROR

    def __init__(
        self,
        message: str,
        *,
        suggestion: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def format_error(self) -> str:
        """Format error with details and suggestion."""
        lines = [f"{self.__class__.__name__}: {self.message}"]

        if self.details:
            lines.append("\n   Details:")
            for key, value in self.details.items():
                lines.append(f"   - {key}: {value}")

        if self.suggestion:
            lines.append(f"\n   Suggestion: {self.suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "severity": self.severity.value,
            "details": self.details,
            "suggestion": self.suggestion,
        }

    def __str__(self) -> str:
        return self.message


# ============================================================================
# Configuration errors
# ============================================================================

class ConfigurationError(DistforgeError):
    """Invalid build configuration, detected at synthesis time."""

    severity = Severity.FATAL


class MissingBinaryError(ConfigurationError):
    """A registered distribution has no application binary."""

    def __init__(self, distribution: str):
        self.distribution = distribution
        super().__init__(
            f"Distribution '{distribution}' does not have a configured binary.",
            suggestion="Register the distribution with the binary it packages.",
            details={"distribution": distribution},
        )


class DuplicateDistributionError(ConfigurationError):
    """A distribution with the same name is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Distribution '{name}' is already registered.",
            suggestion="Give each binary a unique project-scoped name.",
            details={"distribution": name},
        )


class NotFoundError(ConfigurationError):
    """Lookup of an unknown name."""

    def __init__(self, kind: str, name: str, available: Optional[List[str]] = None):
        self.kind = kind
        self.name = name
        self.available = list(available or [])
        details: Dict[str, Any] = {kind: name}
        if self.available:
            details["available"] = ", ".join(self.available)
        super().__init__(f"No {kind} named '{name}'.", details=details)


class DistributionNotFoundError(NotFoundError):
    """Unknown distribution name."""

    def __init__(self, name: str, available: Optional[List[str]] = None):
        super().__init__("distribution", name, available)


class StepNotFoundError(NotFoundError):
    """Unknown step name."""

    def __init__(self, name: str, available: Optional[List[str]] = None):
        super().__init__("step", name, available)


class RegistryFrozenError(ConfigurationError):
    """Mutation attempted after synthesis started."""

    def __init__(self, what: str, phase: str):
        self.what = what
        self.phase = phase
        super().__init__(
            f"Cannot modify {what}: registry is {phase}.",
            suggestion="Configure distributions before synthesizing the task graph.",
            details={"target": what, "phase": phase},
        )


class DuplicateStepError(ConfigurationError):
    """Two steps with the same name were added to one graph."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Step '{name}' already exists in the task graph.", details={"step": name})


class StepCycleError(ConfigurationError):
    """Circular dependency between steps."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        cycle_repr = " -> ".join(cycle) + f" -> {cycle[0]}"
        super().__init__(
            f"Circular step dependency detected: {cycle_repr}",
            details={"cycle": cycle, "cycle_length": len(cycle)},
        )


class SettingsError(ConfigurationError):
    """Settings or project descriptor failed validation."""


# ============================================================================
# Execution errors
# ============================================================================

class ExecutionError(DistforgeError):
    """A step failed while being executed by the local executor."""

    def __init__(self, step: str, reason: str):
        self.step = step
        self.reason = reason
        super().__init__(
            f"Step '{step}' failed: {reason}",
            details={"step": step},
        )
