"""
Diagnostics collected during analysis.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List
import logging

from .ast.nodes import SourceLocation

logger = logging.getLogger(__name__)


class Severity(Enum):
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    location: SourceLocation
    message: str

    def __str__(self) -> str:
        return f"{self.location}: {self.severity.value}: {self.message}"


@dataclass
class ErrorReporter:
    """Collects diagnostics emitted by the encoder.

    Warnings never abort the analysis; callers inspect `diagnostics`
    once the run is over.
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def warning(self, location: SourceLocation, message: str) -> None:
        logger.warning("%s: %s", location, message)
        self.diagnostics.append(Diagnostic(Severity.WARNING, location, message))

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]
