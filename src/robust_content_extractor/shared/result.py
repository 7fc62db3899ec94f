"""Result objects and diagnostic types for content extraction.

Diagnostics are collected instead of raised so that a damaged document still
yields a partial tree together with an account of what went wrong.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Tolerated irregularities in the token stream
    ERROR = auto()      # Errors that cut the build short
    CRITICAL = auto()   # Unexpected failures, result is partial


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.position:
            result["position"] = dict(self.position)
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class PerformanceMetrics:
    """Counters and timings for one extraction."""

    processing_time_ms: float = 0.0
    characters_processed: int = 0
    tokens_processed: int = 0
    nodes_created: int = 0
    nodes_pruned: int = 0
    paragraphs_scored: int = 0

    @property
    def tokens_per_second(self) -> float:
        """Calculate tokens consumed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.tokens_processed * 1000.0) / self.processing_time_ms

    @property
    def prune_rate(self) -> float:
        """Fraction of created nodes that were detached as boilerplate."""
        if self.nodes_created == 0:
            return 0.0
        return self.nodes_pruned / self.nodes_created

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to a dictionary."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "characters_processed": self.characters_processed,
            "tokens_processed": self.tokens_processed,
            "nodes_created": self.nodes_created,
            "nodes_pruned": self.nodes_pruned,
            "paragraphs_scored": self.paragraphs_scored,
        }
