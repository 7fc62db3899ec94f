"""Integration adapters for handing extracted content to popular libraries.

This module provides the adapter framework and adapters for lxml,
BeautifulSoup and pandas. Target libraries are optional: they are imported
lazily and an adapter whose library is missing reports itself unavailable
instead of failing at import time.
"""

import threading
import time
import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Type

from robust_content_extractor.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)

from .extractor import ExtractionResult, extract_string


class AdapterType(Enum):
    """Types of integration adapters."""

    MARKUP_LIBRARY = auto()  # HTML processing libraries (lxml, BeautifulSoup)
    DATA_FRAME = auto()      # DataFrame libraries (pandas)


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    version: str
    adapter_type: AdapterType
    target_library: str
    supported_versions: List[str]
    description: str
    supports_from_target: bool = True


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class AdapterPerformanceProfiler:
    """Keeps recent conversion timings per adapter."""

    MAX_SAMPLES = 1000

    def __init__(self) -> None:
        self._metrics: Dict[str, List[float]] = {}
        self._lock = threading.RLock()

    def record_conversion(self, adapter_name: str, conversion_time_ms: float) -> None:
        """Record conversion performance."""
        with self._lock:
            samples = self._metrics.setdefault(adapter_name, [])
            samples.append(conversion_time_ms)
            if len(samples) > self.MAX_SAMPLES:
                del samples[:-self.MAX_SAMPLES]

    def get_statistics(self, adapter_name: str) -> Dict[str, float]:
        """Get performance statistics for an adapter."""
        with self._lock:
            times = self._metrics.get(adapter_name)
            if not times:
                return {}
            return {
                "count": len(times),
                "average_ms": sum(times) / len(times),
                "min_ms": min(times),
                "max_ms": max(times),
                "total_ms": sum(times),
            }

    def get_all_statistics(self) -> Dict[str, Dict[str, float]]:
        """Get performance statistics for all adapters."""
        with self._lock:
            return {name: self.get_statistics(name) for name in self._metrics}


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters.

    ``to_target`` turns an ExtractionResult into the target library's
    representation. Adapters whose target can carry markup also implement
    ``from_target``, which extracts content from a target object.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        """Initialize the integration adapter.

        Args:
            correlation_id: Optional correlation ID for request tracking
        """
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)
        self._profiler = AdapterPerformanceProfiler()

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library is installed."""

    @abstractmethod
    def to_target(self, extraction: ExtractionResult) -> ConversionResult:
        """Convert an ExtractionResult to the target format.

        Args:
            extraction: Result of a content extraction

        Returns:
            ConversionResult containing the converted data and metadata
        """

    def from_target(self, target_data: Any) -> ConversionResult:
        """Extract content from an object of the target library.

        Args:
            target_data: Data in target format

        Returns:
            ConversionResult containing an ExtractionResult
        """
        return self._create_error_result(
            f"{self.metadata.name} adapter does not support conversion from target",
            target_data,
        )

    def get_performance_stats(self) -> Dict[str, Dict[str, float]]:
        """Get performance statistics for this adapter."""
        return self._profiler.get_all_statistics()

    def _record_performance(self, operation_time_ms: float) -> None:
        self._profiler.record_conversion(self.metadata.name, operation_time_ms)

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.warning(
            "Conversion failed",
            extra={"adapter": self.metadata.name, "error": error_message}
        )
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )

    def _extract_markup(
        self, markup: str, original_data: Any, start_time: float
    ) -> ConversionResult:
        extraction = extract_string(markup, correlation_id=self.correlation_id)
        processing_time = (time.time() - start_time) * 1000
        self._record_performance(processing_time)
        return ConversionResult(
            success=extraction.success,
            converted_data=extraction,
            original_data=original_data,
            conversion_time_ms=processing_time,
            metadata={"markup_length": len(markup)},
            diagnostics=list(extraction.diagnostics),
        )


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._instances: "weakref.WeakValueDictionary[str, IntegrationAdapter]" = (
            weakref.WeakValueDictionary()
        )
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        """Register an adapter class under its metadata name."""
        with self._lock:
            metadata = adapter_class().metadata
            self._adapters[metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None
    ) -> Optional[IntegrationAdapter]:
        """Get an adapter instance by name.

        Args:
            adapter_name: Name of the adapter
            correlation_id: Optional correlation ID

        Returns:
            Adapter instance if registered and available, None otherwise
        """
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
            if adapter_class is None:
                return None

            instance_key = f"{adapter_name}_{correlation_id or 'default'}"
            instance = self._instances.get(instance_key)
            if instance is not None:
                return instance

            instance = adapter_class(correlation_id)
            if not instance.is_available():
                return None
            self._instances[instance_key] = instance
            return instance

    def list_available_adapters(self) -> List[AdapterMetadata]:
        """List metadata for every registered adapter whose library is installed."""
        with self._lock:
            instances = [adapter_class() for adapter_class in self._adapters.values()]
        return [instance.metadata for instance in instances if instance.is_available()]

    def get_adapters_by_type(self, adapter_type: AdapterType) -> List[str]:
        """Get names of available adapters of the given type."""
        return [
            metadata.name for metadata in self.list_available_adapters()
            if metadata.adapter_type == adapter_type
        ]


class LxmlAdapter(IntegrationAdapter):
    """Adapter between extracted content and ``lxml.html`` elements."""

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            adapter_type=AdapterType.MARKUP_LIBRARY,
            target_library="lxml",
            supported_versions=["4.0+"],
            description="Selected content as an lxml.html element tree"
        )

    def is_available(self) -> bool:
        """Check if lxml is available."""
        try:
            import lxml.html  # noqa: F401
        except ImportError:
            return False
        return True

    def to_target(self, extraction: ExtractionResult) -> ConversionResult:
        """Convert the selected markup to an ``lxml.html`` element.

        Args:
            extraction: Result of a content extraction

        Returns:
            ConversionResult containing an lxml.html.HtmlElement
        """
        start_time = time.time()

        if not extraction.html:
            return self._create_error_result(
                "Extraction result has no selected content",
                extraction,
                (time.time() - start_time) * 1000
            )

        try:
            import lxml.html

            element = lxml.html.fragment_fromstring(extraction.html)
        except Exception as e:
            return self._create_error_result(
                f"Failed to convert to lxml: {e}",
                extraction,
                (time.time() - start_time) * 1000
            )

        processing_time = (time.time() - start_time) * 1000
        self._record_performance(processing_time)
        return ConversionResult(
            success=True,
            converted_data=element,
            original_data=extraction,
            conversion_time_ms=processing_time,
            metadata={
                "root_tag": element.tag,
                "element_count": sum(1 for _ in element.iter()),
            }
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Extract content from an lxml element or tree.

        Args:
            target_data: lxml element

        Returns:
            ConversionResult containing an ExtractionResult
        """
        start_time = time.time()

        if not hasattr(target_data, "tag") and not hasattr(target_data, "getroot"):
            return self._create_error_result(
                "Target data is not a valid lxml element",
                target_data,
                (time.time() - start_time) * 1000
            )

        try:
            import lxml.html

            markup = lxml.html.tostring(target_data, encoding="unicode")
        except Exception as e:
            return self._create_error_result(
                f"Failed to serialize lxml element: {e}",
                target_data,
                (time.time() - start_time) * 1000
            )

        return self._extract_markup(markup, target_data, start_time)


class BeautifulSoupAdapter(IntegrationAdapter):
    """Adapter between extracted content and BeautifulSoup documents."""

    PARSER = "html.parser"

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="beautifulsoup",
            version="1.0.0",
            adapter_type=AdapterType.MARKUP_LIBRARY,
            target_library="beautifulsoup4",
            supported_versions=["4.0+"],
            description="Selected content as a BeautifulSoup document"
        )

    def is_available(self) -> bool:
        """Check if BeautifulSoup is available."""
        try:
            from bs4 import BeautifulSoup  # noqa: F401
        except ImportError:
            return False
        return True

    def to_target(self, extraction: ExtractionResult) -> ConversionResult:
        """Convert the selected markup to a BeautifulSoup document.

        Args:
            extraction: Result of a content extraction

        Returns:
            ConversionResult containing a BeautifulSoup object
        """
        start_time = time.time()

        try:
            from bs4 import BeautifulSoup

            soup = BeautifulSoup(extraction.html, self.PARSER)
        except Exception as e:
            return self._create_error_result(
                f"Failed to convert to BeautifulSoup: {e}",
                extraction,
                (time.time() - start_time) * 1000
            )

        processing_time = (time.time() - start_time) * 1000
        self._record_performance(processing_time)
        result = ConversionResult(
            success=True,
            converted_data=soup,
            original_data=extraction,
            conversion_time_ms=processing_time,
            metadata={"parser_name": self.PARSER, "markup_length": len(extraction.html)}
        )
        if not extraction.html:
            result.warnings.append("Extraction result has no selected content")
        return result

    def from_target(self, target_data: Any) -> ConversionResult:
        """Extract content from a BeautifulSoup document or tag.

        Args:
            target_data: BeautifulSoup object or Tag

        Returns:
            ConversionResult containing an ExtractionResult
        """
        start_time = time.time()

        if not hasattr(target_data, "decode_contents"):
            return self._create_error_result(
                "Target data is not a valid BeautifulSoup object",
                target_data,
                (time.time() - start_time) * 1000
            )

        return self._extract_markup(str(target_data), target_data, start_time)


class PandasAdapter(IntegrationAdapter):
    """Adapter exposing the candidate ranking as a pandas DataFrame."""

    COLUMNS = [
        "rank", "tag", "class_and_id", "score", "depth",
        "child_count", "text_length", "link_density",
    ]

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> None:
        super().__init__(correlation_id)
        self.limit = limit

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="pandas",
            version="1.0.0",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            supported_versions=["1.0+"],
            description="Candidate containers and their scores as a DataFrame",
            supports_from_target=False,
        )

    def is_available(self) -> bool:
        """Check if pandas is available."""
        try:
            import pandas  # noqa: F401
        except ImportError:
            return False
        return True

    def to_target(self, extraction: ExtractionResult) -> ConversionResult:
        """Convert the candidate ranking to a DataFrame, best first.

        Args:
            extraction: Result of a content extraction

        Returns:
            ConversionResult containing a pandas DataFrame
        """
        start_time = time.time()

        try:
            import pandas as pd

            rows = [
                {
                    "rank": rank,
                    "tag": node.tag_type,
                    "class_and_id": node.class_and_id,
                    "score": node.score,
                    "depth": node.depth,
                    "child_count": len(node.children),
                    "text_length": len(node.text_content()),
                    "link_density": node.link_density(),
                }
                for rank, node in enumerate(extraction.candidates(self.limit), start=1)
            ]
            df = pd.DataFrame(rows, columns=self.COLUMNS)
        except Exception as e:
            return self._create_error_result(
                f"Failed to convert to pandas DataFrame: {e}",
                extraction,
                (time.time() - start_time) * 1000
            )

        processing_time = (time.time() - start_time) * 1000
        self._record_performance(processing_time)
        return ConversionResult(
            success=True,
            converted_data=df,
            original_data=extraction,
            conversion_time_ms=processing_time,
            metadata={
                "dataframe_shape": df.shape,
                "row_count": len(df),
                "columns": list(df.columns),
            }
        )


# Global adapter registry instance
_adapter_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally.

    Args:
        adapter_class: Adapter class to register
    """
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance.

    Args:
        adapter_name: Name of the adapter
        correlation_id: Optional correlation ID

    Returns:
        Adapter instance if available, None otherwise
    """
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List all available integration adapters."""
    return _adapter_registry.list_available_adapters()


def get_adapters_by_type(adapter_type: AdapterType) -> List[str]:
    """Get names of available adapters of the given type."""
    return _adapter_registry.get_adapters_by_type(adapter_type)


register_adapter(LxmlAdapter)
register_adapter(BeautifulSoupAdapter)
register_adapter(PandasAdapter)
