"""Heuristic content scoring for tree nodes.

Scores start from a per-tag weight adjusted by class and id keywords when a
node is created. When a paragraph-like element closes, its text density is
pushed up to its parent and, at half strength, to its grandparent.
"""

import re
from typing import Optional

from robust_content_extractor.shared.config import ScoringConfig

from .node import ContentNode


class ScoringEngine:
    """Applies initial scores and propagates content density.

    Patterns are compiled once; the engine holds no per-document state and may
    be shared between builds.
    """

    def __init__(self, config: Optional[ScoringConfig] = None) -> None:
        """Initialize the scoring engine.

        Args:
            config: Scoring configuration (defaults used when omitted)
        """
        self.config = config or ScoringConfig()
        self._negative = re.compile(self.config.negative_pattern, re.IGNORECASE)
        self._positive = re.compile(self.config.positive_pattern, re.IGNORECASE)
        self._delimiters = re.compile(self.config.delimiter_pattern)
        self._paragraph_tags = frozenset(self.config.paragraph_tags)
        self._article_tags = frozenset(self.config.article_tags)

    def initialize(self, node: ContentNode) -> None:
        """Add the initial score for a freshly created node.

        Tags outside the weight table are left untouched.
        """
        weight = self.config.tag_weights.get(node.tag_type)
        if weight is None:
            return

        node.score += weight
        class_and_id = node.class_and_id
        if class_and_id:
            if self._negative.search(class_and_id):
                node.score -= self.config.class_weight
            if self._positive.search(class_and_id):
                node.score += self.config.class_weight
        if node.tag_type in self._article_tags:
            node.score += self.config.article_bonus

    def content_score(self, text: str) -> float:
        """Score a piece of text by punctuation count and length."""
        delimiters = min(
            len(self._delimiters.findall(text)), self.config.max_delimiters
        )
        length_bonus = min(
            len(text) / self.config.length_divisor, self.config.max_length_bonus
        )
        return delimiters + length_bonus

    def is_paragraph(self, node: ContentNode) -> bool:
        """Check if the node's text should be propagated when it closes."""
        return node.tag_type in self._paragraph_tags

    def propagate(self, node: ContentNode) -> float:
        """Credit the node's content score to its parent and grandparent.

        Returns:
            The content score of the node's text view
        """
        score = self.content_score(node.text_content())
        parent = node.parent
        if parent is None:
            return score

        parent.score += score
        grandparent = parent.parent
        if grandparent is not None:
            grandparent.score += score * self.config.grandparent_factor
        return score
