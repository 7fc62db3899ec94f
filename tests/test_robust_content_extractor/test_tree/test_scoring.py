"""Tests for the content scoring engine."""

import pytest

from robust_content_extractor.shared import ScoringConfig
from robust_content_extractor.tree import ContentNode, ScoringEngine


@pytest.fixture
def engine() -> ScoringEngine:
    return ScoringEngine()


def _scored(engine: ScoringEngine, tag: str, **attributes: str) -> ContentNode:
    node = ContentNode(tag_type=tag, attributes=dict(attributes))
    engine.initialize(node)
    return node


class TestInitialScores:
    """Test initial scores from tag and class/id."""

    @pytest.mark.parametrize(
        "tag,attributes,expected",
        [
            ("div", {}, 5.0),
            ("div", {"class": "comment"}, -20.0),
            ("div", {"class": "post sidebar"}, 5.0),
            ("div", {"id": "Content"}, 30.0),
            ("article", {}, 25.0),
            ("article", {"class": "post"}, 50.0),
            ("article", {"class": "comment"}, 0.0),
            ("h2", {}, -5.0),
            ("th", {}, -6.0),
            ("td", {"class": "entry"}, 28.0),
        ],
    )
    def test_weighted_tags(self, engine: ScoringEngine, tag: str,
                           attributes: dict, expected: float) -> None:
        """Test tags that appear in the weight table."""
        assert _scored(engine, tag, **attributes).score == pytest.approx(expected)

    def test_unweighted_tag_ignores_class(self, engine: ScoringEngine) -> None:
        """Test that tags outside the table keep their score."""
        assert _scored(engine, "span", **{"class": "content"}).score == 0.0

    def test_custom_class_weight(self) -> None:
        """Test a configured class weight."""
        engine = ScoringEngine(ScoringConfig(class_weight=10.0))
        assert _scored(engine, "div", **{"class": "article"}).score == pytest.approx(15.0)


class TestContentScore:
    """Test scoring of text density."""

    def test_length_only(self, engine: ScoringEngine) -> None:
        """Test text without delimiters."""
        assert engine.content_score("a" * 50) == pytest.approx(0.5)

    def test_caps(self, engine: ScoringEngine) -> None:
        """Test that delimiter count and length bonus are capped."""
        assert engine.content_score("," * 20 + "a" * 980) == pytest.approx(18.0)

    def test_fullwidth_delimiters(self, engine: ScoringEngine) -> None:
        """Test CJK punctuation counts as delimiters."""
        assert engine.content_score("你好，世界。") == pytest.approx(2.06)

    def test_empty_text(self, engine: ScoringEngine) -> None:
        """Test that empty text scores zero."""
        assert engine.content_score("") == 0.0


class TestPropagation:
    """Test upward propagation of paragraph scores."""

    def test_parent_and_grandparent(self, engine: ScoringEngine) -> None:
        """Test full and half credit."""
        grandparent = ContentNode(tag_type="body")
        parent = ContentNode(tag_type="div")
        paragraph = ContentNode(tag_type="p")
        grandparent.append_child(parent)
        parent.append_child(paragraph)
        paragraph.append_text("a" * 50)

        score = engine.propagate(paragraph)

        assert score == pytest.approx(0.5)
        assert parent.score == pytest.approx(0.5)
        assert grandparent.score == pytest.approx(0.25)
        assert paragraph.score == 0.0

    def test_detached_node(self, engine: ScoringEngine) -> None:
        """Test that a node without a parent only reports its score."""
        paragraph = ContentNode(tag_type="p")
        paragraph.append_text("One, two.")
        assert engine.propagate(paragraph) == pytest.approx(2.09)

    def test_is_paragraph(self, engine: ScoringEngine) -> None:
        """Test paragraph tag detection."""
        assert engine.is_paragraph(ContentNode(tag_type="p"))
        assert engine.is_paragraph(ContentNode(tag_type="pre"))
        assert not engine.is_paragraph(ContentNode(tag_type="div"))
