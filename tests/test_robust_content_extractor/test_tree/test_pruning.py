"""Tests for boilerplate classification."""

import pytest

from robust_content_extractor.shared import PruningConfig
from robust_content_extractor.tree import ROOT_TAG, ContentNode, PruningPolicy


class TestPruningPolicy:
    """Test the boilerplate decision."""

    @pytest.mark.parametrize(
        "tag,class_and_id,expected",
        [
            ("header", "", True),
            ("footer", "content", True),
            ("div", "sidebar", True),
            ("div", "SideBar", True),
            ("div", "main-sidebar", False),
            ("div", "content", False),
            ("ul", "nav-links", True),
            ("div", "", False),
        ],
    )
    def test_classify(self, tag: str, class_and_id: str, expected: bool) -> None:
        """Test classification by tag and class/id."""
        assert PruningPolicy().classify(tag, class_and_id) is expected

    def test_should_prune_uses_node_attributes(self) -> None:
        """Test the node-level decision."""
        node = ContentNode(tag_type="div", attributes={"id": "comments"})
        assert PruningPolicy().should_prune(node)

    def test_root_is_never_pruned(self) -> None:
        """Test that the synthetic root is kept."""
        assert not PruningPolicy().should_prune(ContentNode(tag_type=ROOT_TAG))

    def test_disabled_policy(self) -> None:
        """Test that a disabled policy keeps everything."""
        policy = PruningPolicy(PruningConfig(enabled=False))
        assert not policy.enabled
        assert not policy.should_prune(ContentNode(tag_type="header"))

    def test_custom_boilerplate_tags(self) -> None:
        """Test configured boilerplate tags."""
        policy = PruningPolicy(PruningConfig(boilerplate_tags=("nav",)))
        assert policy.classify("nav", "")
        assert not policy.classify("header", "")
