"""Content extraction API with progressive disclosure.

This module provides the main extraction API, from simple module-level
functions to a reusable, configured extractor class, following the never-fail
philosophy: malformed documents produce results with diagnostics rather than
exceptions.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import httpx

from robust_content_extractor.character import (
    CharacterStreamProcessor,
    EncodingResult,
    InputType,
)
from robust_content_extractor.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ExtractorConfig,
    PerformanceMetrics,
    get_logger,
)
from robust_content_extractor.tokenization import HTMLTokenizer, Token
from robust_content_extractor.tree import (
    ROOT_TAG,
    BuildResult,
    ContentNode,
    ContentTreeBuilder,
    PruningPolicy,
    ScoringEngine,
    rank_candidates,
    select_top_node,
)

from .fetch import PageFetcher

# Constants for API operations
PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000  # Milliseconds per second conversion


@dataclass
class ExtractionResult:
    """Result of extracting the main content of one document.

    Attributes:
        root: Root of the pruned and scored content tree
        top_node: Highest-scoring container, None when nothing qualified.
            Parent links are weak, so keep the result alive while using
            ``top_node.parent`` or ``top_node.depth``; once the tree is
            released the node reports no parent and depth 0
        text: Plain text view of ``top_node``
        html: Markup view of ``top_node``
        success: False when extraction stopped on an unexpected failure
        diagnostics: Everything noteworthy that happened along the way
        performance: Timings and counters
        encoding: How the input was decoded, when it was decoded here
        source: Where the document came from (path, URL, ``<string>``)
    """

    root: ContentNode = field(default_factory=lambda: ContentNode(tag_type=ROOT_TAG))
    top_node: Optional[ContentNode] = None
    text: str = ""
    html: str = ""
    success: bool = True
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    encoding: Optional[EncodingResult] = None
    source: Optional[str] = None
    correlation_id: Optional[str] = None

    @property
    def has_content(self) -> bool:
        """Check if any main content was found."""
        return bool(self.text)

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                details=details,
                correlation_id=self.correlation_id
            )
        )

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def candidates(self, limit: Optional[int] = None) -> List[ContentNode]:
        """Get the highest-scoring containers, best first."""
        return rank_candidates(self.root, limit)

    def summary(self) -> Dict[str, Any]:
        """Get summary information for the extraction."""
        top = self.top_node
        return {
            "success": self.success,
            "source": self.source,
            "has_content": self.has_content,
            "text_length": len(self.text),
            "top_node": {
                "tag": top.tag_type,
                "class_and_id": top.class_and_id,
                "score": top.score,
                "depth": top.depth,
            } if top is not None else None,
            "encoding": self.encoding.encoding if self.encoding else None,
            "performance": self.performance.to_dict(),
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
            "correlation_id": self.correlation_id,
        }


def _create_error_result(
    error_message: str,
    correlation_id: Optional[str],
    processing_time: float,
    source: Optional[str] = None
) -> ExtractionResult:
    """Create error result following never-fail philosophy.

    Args:
        error_message: Error description
        correlation_id: Optional correlation ID
        processing_time: Processing time in milliseconds
        source: Optional description of the input

    Returns:
        ExtractionResult with error information
    """
    result = ExtractionResult(correlation_id=correlation_id, source=source)
    result.success = False
    result.performance.processing_time_ms = processing_time
    result.add_diagnostic(
        DiagnosticSeverity.CRITICAL,
        error_message,
        "api_extractor"
    )
    return result


def _describe_source(input_data: Any) -> str:
    if isinstance(input_data, Path):
        return str(input_data)
    if isinstance(input_data, str):
        return "<string>"
    if isinstance(input_data, (bytes, bytearray)):
        return "<bytes>"
    return getattr(input_data, "name", None) or f"<{type(input_data).__name__}>"


class ContentExtractor:
    """Reusable extractor holding a configuration and its compiled engines.

    The scoring engine and pruning policy are built once and shared by every
    extraction; each extraction gets its own tree builder.

    Examples:
        >>> extractor = ContentExtractor(ExtractorConfig.aggressive())
        >>> result = extractor.extract('<div class="post"><p>Hello, world.</p></div>')
        >>> result.text
        'Hello, world.'
    """

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the extractor.

        Args:
            config: Extraction configuration (defaults used when omitted)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ExtractorConfig.default()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "content_extractor")

        self._char_processor = CharacterStreamProcessor(self.config.character)
        self._tokenizer = HTMLTokenizer(correlation_id=correlation_id)
        self._scoring = ScoringEngine(self.config.scoring)
        self._pruning = PruningPolicy(self.config.pruning)

        # Extractor state for multi-document use
        self._extraction_count = 0
        self._successful_extractions = 0
        self._total_processing_time = 0.0

    def extract(
        self,
        input_data: InputType,
        declared_encoding: Optional[str] = None,
        source: Optional[str] = None
    ) -> ExtractionResult:
        """Extract the main content of a document.

        Args:
            input_data: HTML as text, bytes, file-like object or Path
            declared_encoding: Charset announced out of band for byte input
            source: Description of the input used in results and logs

        Returns:
            ExtractionResult with the selected content and diagnostics
        """
        start_time = time.time()
        source = source or _describe_source(input_data)

        self.logger.info(
            "Starting extraction",
            extra={"input_type": type(input_data).__name__, "source": source}
        )

        try:
            stream = self._char_processor.open(input_data, declared_encoding)
        except (OSError, TypeError) as e:
            processing_time = (time.time() - start_time) * MS_PER_SECOND
            self.logger.warning(
                "Unable to open input",
                extra={"source": source, "error": str(e)}
            )
            self._record(success=False, processing_time=processing_time)
            return _create_error_result(
                f"Unable to open input: {e}", self.correlation_id,
                processing_time, source
            )

        build_result = self._builder().build(self._tokenizer.iter_tokens(stream))
        build_result.performance.characters_processed = stream.characters_read

        result = self._finalize(build_result, start_time, source)
        result.encoding = stream.encoding
        for message in stream.diagnostics:
            result.add_diagnostic(
                DiagnosticSeverity.INFO, message, "character_stream"
            )
        self._filter_diagnostics(result)
        return result

    def extract_tokens(
        self,
        tokens: Iterable[Token],
        source: Optional[str] = None
    ) -> ExtractionResult:
        """Extract the main content from an already tokenized document.

        Args:
            tokens: Tokens in document order, e.g. from another tokenizer
            source: Description of the input used in results and logs

        Returns:
            ExtractionResult with the selected content and diagnostics
        """
        start_time = time.time()
        build_result = self._builder().build(tokens)
        result = self._finalize(build_result, start_time, source or "<tokens>")
        self._filter_diagnostics(result)
        return result

    def _builder(self) -> ContentTreeBuilder:
        return ContentTreeBuilder(
            config=self.config.builder,
            scoring=self._scoring,
            pruning=self._pruning,
            correlation_id=self.correlation_id,
        )

    def _finalize(
        self,
        build_result: BuildResult,
        start_time: float,
        source: Optional[str]
    ) -> ExtractionResult:
        """Select the top node and render its views."""
        result = ExtractionResult(
            root=build_result.root,
            success=build_result.success,
            diagnostics=list(build_result.diagnostics),
            performance=build_result.performance,
            source=source,
            correlation_id=self.correlation_id,
        )

        try:
            excluded = self.config.builder.excluded_elements
            top = select_top_node(build_result.root)
            result.top_node = top
            if top is not None:
                result.text = top.text_content(excluded)
                result.html = top.html_content(excluded)
            else:
                result.add_diagnostic(
                    DiagnosticSeverity.WARNING,
                    "No content container found",
                    "selector"
                )
        except Exception as e:
            # Never-fail: the tree is still returned
            self.logger.exception("Content selection failed")
            result.success = False
            result.add_diagnostic(
                DiagnosticSeverity.CRITICAL,
                f"Content selection failed: {e}",
                "selector",
                details={"exception_type": type(e).__name__}
            )

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        result.performance.processing_time_ms = processing_time
        self._record(success=result.success, processing_time=processing_time)

        self.logger.info(
            "Extraction completed",
            extra={
                "source": source,
                "success": result.success,
                "text_length": len(result.text),
                "top_score": result.top_node.score if result.top_node else None,
                "processing_time_ms": processing_time,
            }
        )
        return result

    def _filter_diagnostics(self, result: ExtractionResult) -> None:
        if self.config.global_.enable_diagnostics:
            return
        # Failures are always reported
        result.diagnostics = [
            diag for diag in result.diagnostics
            if diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
        ]

    def _record(self, success: bool, processing_time: float) -> None:
        self._extraction_count += 1
        self._total_processing_time += processing_time
        if success:
            self._successful_extractions += 1

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get extractor usage statistics.

        Returns:
            Dictionary with extraction counts and timings
        """
        return {
            "total_extractions": self._extraction_count,
            "successful_extractions": self._successful_extractions,
            "success_rate": (
                self._successful_extractions / self._extraction_count
                if self._extraction_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._extraction_count
                if self._extraction_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset extractor usage statistics."""
        self._extraction_count = 0
        self._successful_extractions = 0
        self._total_processing_time = 0.0


def extract(
    input_data: InputType,
    config: Optional[ExtractorConfig] = None,
    correlation_id: Optional[str] = None
) -> ExtractionResult:
    """Extract the main content from any supported input.

    This is the primary entry point. Text, bytes, open files and paths are
    accepted; byte input has its encoding detected automatically.

    Args:
        input_data: HTML as string, bytes, file-like object, or Path
        config: Optional extraction configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ExtractionResult containing the selected content and diagnostics

    Examples:
        >>> result = extract('<div id="content"><p>Alpha, beta.</p></div>')
        >>> result.text
        'Alpha, beta.'
    """
    if isinstance(input_data, Path):
        return extract_file(input_data, config=config, correlation_id=correlation_id)
    return ContentExtractor(config, correlation_id).extract(input_data)


def extract_string(
    html: str,
    config: Optional[ExtractorConfig] = None,
    correlation_id: Optional[str] = None
) -> ExtractionResult:
    """Extract the main content from an HTML string.

    Args:
        html: HTML document text
        config: Optional extraction configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ExtractionResult containing the selected content and diagnostics
    """
    logger = get_logger(__name__, correlation_id, "extract_string")
    logger.debug(
        "Starting string extraction",
        extra={
            "content_length": len(html),
            "preview": (
                html[:PREVIEW_LENGTH] + "..."
                if len(html) > PREVIEW_LENGTH else html
            )
        }
    )
    return ContentExtractor(config, correlation_id).extract(html, source="<string>")


def extract_file(
    file_path: Union[str, Path],
    encoding: Optional[str] = None,
    config: Optional[ExtractorConfig] = None,
    correlation_id: Optional[str] = None
) -> ExtractionResult:
    """Extract the main content from an HTML file.

    Args:
        file_path: Path to the HTML file (string or Path object)
        encoding: Optional encoding override (auto-detected if not provided)
        config: Optional extraction configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ExtractionResult; a missing or unreadable file gives an unsuccessful
        result rather than an exception
    """
    start_time = time.time()
    path_obj = Path(file_path)

    error_message = None
    if not path_obj.exists():
        error_message = f"File not found: {path_obj}"
    elif not path_obj.is_file():
        error_message = f"Path is not a file: {path_obj}"

    if error_message:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return _create_error_result(
            error_message, correlation_id, processing_time, str(path_obj)
        )

    return ContentExtractor(config, correlation_id).extract(
        path_obj, declared_encoding=encoding, source=str(path_obj)
    )


def extract_url(
    url: str,
    config: Optional[ExtractorConfig] = None,
    correlation_id: Optional[str] = None,
    client: Optional[httpx.Client] = None
) -> ExtractionResult:
    """Fetch a page and extract its main content.

    Args:
        url: Absolute http or https URL
        config: Optional extraction configuration
        correlation_id: Optional correlation ID for request tracking
        client: Optional preconfigured ``httpx.Client``

    Returns:
        ExtractionResult for the fetched page

    Raises:
        FetchError: The page could not be retrieved
    """
    extractor = ContentExtractor(config, correlation_id)
    fetcher = PageFetcher(extractor.config.fetch, client, correlation_id)
    page = fetcher.fetch(url)

    result = extractor.extract(
        page.content, declared_encoding=page.encoding, source=page.url
    )
    if page.truncated and extractor.config.global_.enable_diagnostics:
        result.add_diagnostic(
            DiagnosticSeverity.WARNING,
            f"Page body truncated at {extractor.config.fetch.max_bytes} bytes",
            "page_fetcher",
            details={"url": page.url}
        )
    return result
