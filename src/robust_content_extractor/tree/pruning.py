"""Boilerplate classification applied when an element closes."""

import re
from typing import Optional

from robust_content_extractor.shared.config import PruningConfig

from .node import ContentNode


class PruningPolicy:
    """Decides whether a closed element is boilerplate.

    An element is boilerplate when its tag is structural page furniture, or
    when its class and id look like navigation or advertising without also
    looking like a main content column.
    """

    def __init__(self, config: Optional[PruningConfig] = None) -> None:
        self.config = config or PruningConfig()
        self._boilerplate_tags = frozenset(self.config.boilerplate_tags)
        self._unlikely = re.compile(self.config.unlikely_pattern, re.IGNORECASE)
        self._rescue = re.compile(self.config.rescue_pattern, re.IGNORECASE)

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def classify(self, tag_type: str, class_and_id: str) -> bool:
        """Classify a tag and its class/id string as boilerplate or not."""
        if tag_type in self._boilerplate_tags:
            return True
        return bool(
            self._unlikely.search(class_and_id)
            and not self._rescue.search(class_and_id)
        )

    def should_prune(self, node: ContentNode) -> bool:
        """Check if ``node`` should be detached from the tree."""
        if not self.config.enabled or node.is_root:
            return False
        return self.classify(node.tag_type, node.class_and_id)
