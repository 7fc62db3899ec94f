"""Robust Content Extractor.

Finds the main readable content of an HTML page in a single streaming pass:
elements are scored as they open and close, boilerplate is detached as soon
as it is recognised, and the best-scoring container is returned as text and
markup. Malformed input never raises; problems are reported as diagnostics.

Progressive API Disclosure:
- Level 1: Simple functions - extract(), extract_string(), extract_file(), extract_url()
- Level 2: Configured extractor - ContentExtractor class
"""

__version__ = "0.1.0"
__author__ = "Robust Content Extractor Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Configured extractor
from .api import (
    ContentExtractor,
    ExtractionResult,
    FetchError,
    extract,
    extract_file,
    extract_string,
    extract_url,
)

# Configuration classes for advanced usage
from .shared.config import ConfigError, ConfigValidationError, ExtractorConfig

# Core tree objects for all API levels
from .tree import ContentNode, select_top_node

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple extraction functions
    "extract",
    "extract_string",
    "extract_file",
    "extract_url",

    # Level 2: Configured extractor
    "ContentExtractor",

    # Result objects and data structures
    "ExtractionResult",
    "ContentNode",
    "select_top_node",

    # Configuration and errors
    "ExtractorConfig",
    "ConfigError",
    "ConfigValidationError",
    "FetchError",
]
