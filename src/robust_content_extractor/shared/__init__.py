"""Shared utilities for content extraction.

This module provides configuration objects, result and diagnostic types, and
logging helpers used across all processing layers.
"""

from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)
from .config import (
    BuilderConfig,
    CharacterConfig,
    ConfigError,
    ConfigValidationError,
    ExtractorConfig,
    FetchConfig,
    GlobalConfig,
    PruningConfig,
    ScoringConfig,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
    "BuilderConfig",
    "CharacterConfig",
    "ConfigError",
    "ConfigValidationError",
    "ExtractorConfig",
    "FetchConfig",
    "GlobalConfig",
    "PruningConfig",
    "ScoringConfig",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
]
