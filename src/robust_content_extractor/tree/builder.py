"""Single-pass tree building with scoring and pruning at element close.

The builder consumes tokens one at a time and keeps only a stack of open
elements. Scores are initialised when an element opens; when it closes its
text density is propagated upward and boilerplate is detached immediately, so
the finished tree is already pruned and scored.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from robust_content_extractor.shared import (
    BuilderConfig,
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
    get_logger,
)
from robust_content_extractor.tokenization import Token, TokenType

from .node import ROOT_TAG, BuilderStack, ContentNode
from .pruning import PruningPolicy
from .scoring import ScoringEngine


@dataclass
class BuildResult:
    """Result of building a content tree from a token stream.

    The tree is always present; on failure it holds whatever was built before
    the build stopped.
    """

    root: ContentNode = field(default_factory=lambda: ContentNode(tag_type=ROOT_TAG))
    success: bool = True
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        entry = DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id
        )
        self.diagnostics.append(entry)

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )


def _position(token: Token) -> Optional[Dict[str, int]]:
    if token.position is None:
        return None
    return {"line": token.position.line, "column": token.position.column}


class ContentTreeBuilder:
    """Builds a scored and pruned content tree from HTML tokens.

    A builder carries per-build state and must not be shared between builds
    running at the same time. The scoring engine and pruning policy hold no
    per-document state and can be shared freely.
    """

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        scoring: Optional[ScoringEngine] = None,
        pruning: Optional[PruningPolicy] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize tree builder.

        Args:
            config: Builder configuration (defaults used when omitted)
            scoring: Scoring engine applied to opening and closing elements
            pruning: Policy deciding which closed elements are detached
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or BuilderConfig()
        self.scoring = scoring or ScoringEngine()
        self.pruning = pruning or PruningPolicy()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "content_tree_builder")

        self._void: FrozenSet[str] = frozenset(self.config.void_elements)
        self._excluded: FrozenSet[str] = frozenset(self.config.excluded_elements)

        # Tree building state
        self._stack = BuilderStack()
        self._excluded_depth = 0
        self._metrics = PerformanceMetrics()

    def build(self, tokens: Iterable[Token]) -> BuildResult:
        """Build a content tree from a token stream.

        Consumption stops at the first ERROR token or when the iterable is
        exhausted, whichever comes first.

        Args:
            tokens: Tokens in document order

        Returns:
            BuildResult holding the root of the tree and build diagnostics
        """
        start_time = time.time()
        result = BuildResult(correlation_id=self.correlation_id)
        self._reset_state(result.root)

        self.logger.debug("Starting tree building")

        try:
            for token in tokens:
                self._metrics.tokens_processed += 1
                if token.type == TokenType.ERROR:
                    self._handle_error(token, result)
                    break
                self._process_token(token, result)

            open_elements = len(self._stack) - 1
            if open_elements > 0:
                result.add_diagnostic(
                    DiagnosticSeverity.INFO,
                    f"{open_elements} elements were still open at end of stream",
                    "tree_builder",
                    details={"open_elements": open_elements}
                )

        except Exception as e:
            # Never-fail philosophy: return partial tree on error
            self.logger.exception("Tree building failed")
            result.success = False
            result.add_diagnostic(
                DiagnosticSeverity.CRITICAL,
                f"Tree building failed: {e}",
                "content_tree_builder",
                details={"exception_type": type(e).__name__}
            )

        self._metrics.processing_time_ms = (time.time() - start_time) * 1000
        result.performance = self._metrics

        self.logger.info(
            "Tree building completed",
            extra={
                "tokens_processed": self._metrics.tokens_processed,
                "nodes_created": self._metrics.nodes_created,
                "nodes_pruned": self._metrics.nodes_pruned,
                "processing_time_ms": self._metrics.processing_time_ms,
            }
        )
        return result

    def _reset_state(self, root: ContentNode) -> None:
        """Reset internal state for a new build rooted at ``root``."""
        self._stack = BuilderStack()
        self._stack.push(root)
        self._excluded_depth = 0
        self._metrics = PerformanceMetrics()

    def _process_token(self, token: Token, result: BuildResult) -> None:
        if token.type == TokenType.START_TAG:
            self._handle_start_tag(token)
        elif token.type == TokenType.END_TAG:
            self._handle_end_tag(token, result)
        elif token.type == TokenType.SELF_CLOSING_TAG:
            self._handle_self_closing_tag(token)
        elif token.type == TokenType.TEXT:
            self._handle_text(token)
        # Comments and doctypes carry no content

    def _handle_start_tag(self, token: Token) -> None:
        tag = token.value
        if tag in self._excluded:
            # Void excluded tags (meta) have no content to skip
            if tag not in self._void:
                self._excluded_depth += 1
            return
        if self._excluded_depth:
            return

        node = ContentNode(tag_type=tag, attributes=dict(token.attributes))
        self._metrics.nodes_created += 1
        self.scoring.initialize(node)
        self._stack.peek().append_child(node)
        if tag not in self._void:
            self._stack.push(node)

    def _handle_end_tag(self, token: Token, result: BuildResult) -> None:
        tag = token.value
        if tag in self._excluded:
            if tag not in self._void and self._excluded_depth:
                self._excluded_depth -= 1
            return
        if self._excluded_depth or tag in self._void:
            return

        top = self._stack.peek()
        if top.tag_type == ROOT_TAG:
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                f"Orphaned end tag </{tag}> ignored",
                "tree_builder",
                position=_position(token),
                details={"tag": tag}
            )
            return

        self._close_top()

    def _handle_self_closing_tag(self, token: Token) -> None:
        tag = token.value
        if tag in self._void:
            return
        if tag in self._excluded:
            # <script src="..."/> opened an excluded region with no content
            if self._excluded_depth:
                self._excluded_depth -= 1
            return
        if self._excluded_depth:
            return
        # Balances the START_TAG emitted for the same element; no scoring or pruning
        if self._stack.peek().tag_type == ROOT_TAG:
            return
        self._stack.pop()

    def _handle_text(self, token: Token) -> None:
        if self._excluded_depth:
            return
        text = token.value.strip()
        if len(text) < self.config.min_text_length:
            return
        self._stack.peek().append_text(text)

    def _close_top(self) -> None:
        """Close the element on top of the stack, scoring and pruning it."""
        node = self._stack.peek()
        is_boilerplate = self.pruning.should_prune(node)

        if self.scoring.is_paragraph(node):
            self.scoring.propagate(node)
            self._metrics.paragraphs_scored += 1

        self._stack.pop()

        if is_boilerplate:
            self.logger.debug(
                "Pruning boilerplate element",
                extra={"tag": node.tag_type, "class_and_id": node.class_and_id}
            )
            node.remove()
            self._metrics.nodes_pruned += 1

    def _handle_error(self, token: Token, result: BuildResult) -> None:
        if token.is_eof:
            return
        result.add_diagnostic(
            DiagnosticSeverity.ERROR,
            f"Token stream ended with an error: {token.value}",
            "tree_builder",
            position=_position(token),
        )
