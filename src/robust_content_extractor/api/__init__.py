"""Public extraction API.

Level 1: extract(), extract_string(), extract_file(), extract_url()
Level 2: ContentExtractor, a reusable configured extractor
"""

from .adapters import (
    AdapterMetadata,
    AdapterRegistry,
    AdapterType,
    BeautifulSoupAdapter,
    ConversionResult,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    get_adapters_by_type,
    list_available_adapters,
    register_adapter,
)
from .extractor import (
    ContentExtractor,
    ExtractionResult,
    extract,
    extract_file,
    extract_string,
    extract_url,
)
from .fetch import FetchedPage, FetchError, PageFetcher

__all__ = [
    "ContentExtractor",
    "ExtractionResult",
    "extract",
    "extract_file",
    "extract_string",
    "extract_url",
    "FetchError",
    "FetchedPage",
    "PageFetcher",
    "AdapterMetadata",
    "AdapterRegistry",
    "AdapterType",
    "BeautifulSoupAdapter",
    "ConversionResult",
    "IntegrationAdapter",
    "LxmlAdapter",
    "PandasAdapter",
    "get_adapter",
    "get_adapters_by_type",
    "list_available_adapters",
    "register_adapter",
]
