"""Tests for single-pass content tree building."""

from typing import List

import pytest

from robust_content_extractor.shared import (
    BuilderConfig,
    DiagnosticSeverity,
    PruningConfig,
)
from robust_content_extractor.tokenization import (
    EOF_VALUE,
    HTMLTokenizer,
    Token,
    TokenType,
)
from robust_content_extractor.tree import (
    ROOT_TAG,
    ContentTreeBuilder,
    PruningPolicy,
    select_top_node,
)

SIDEBAR_PAGE = (
    "<html><body>\n"
    '<div id="sidebar"><p>Links, more links, and more.</p></div>\n'
    '<div id="content"><p>Alpha, beta.</p></div>\n'
    "</body></html>"
)


def _tokens(html: str) -> List[Token]:
    return HTMLTokenizer().tokenize(html).tokens


@pytest.fixture
def builder() -> ContentTreeBuilder:
    return ContentTreeBuilder(correlation_id="build-test")


class TestTreeShape:
    """Test the structure of built trees."""

    def test_root_wraps_document(self, builder: ContentTreeBuilder) -> None:
        """Test that the document hangs off a synthetic root."""
        result = builder.build(_tokens("<html><body><p>Hi there</p></body></html>"))

        assert result.success
        assert result.root.tag_type == ROOT_TAG
        assert [n.tag_type for n in result.root.iter_nodes()] == [
            ROOT_TAG, "html", "body", "p",
        ]
        assert result.root.find_by_type("p")[0].text == "Hi there"

    def test_void_elements_are_leaves(self, builder: ContentTreeBuilder) -> None:
        """Test that void elements never become parents."""
        result = builder.build(_tokens("<p>aa<br>bb<img src='x.png'>cc</p>"))

        paragraph = result.root.find_by_type("p")[0]
        assert [c.tag_type for c in paragraph.children] == ["br", "img"]
        assert paragraph.text == "aa bb cc"
        assert paragraph.html_content() == "<p>aa<br> bb<img src='x.png'> cc</p>"

    def test_self_closing_non_void_closes_element(
        self, builder: ContentTreeBuilder
    ) -> None:
        """Test that <div/> is opened and closed at once."""
        result = builder.build(_tokens("<body><div/><p>after text</p></body>"))

        body = result.root.find_by_type("body")[0]
        assert [c.tag_type for c in body.children] == ["div", "p"]
        assert body.children[0].is_leaf

    def test_self_closing_element_is_not_pruned(
        self, builder: ContentTreeBuilder
    ) -> None:
        """Test that a self-closed element is popped without classification."""
        result = builder.build(_tokens("<body><div class='sidebar'/><p>after text</p></body>"))

        body = result.root.find_by_type("body")[0]
        assert [c.tag_type for c in body.children] == ["div", "p"]

    def test_excluded_content_is_never_built(self, builder: ContentTreeBuilder) -> None:
        """Test that scripts and their contents are skipped entirely."""
        html = (
            "<div><script>var x = '<p>not content</p>';</script>"
            "<noscript><p>enable js</p></noscript><p>Real text</p></div>"
        )

        result = builder.build(_tokens(html))

        assert [n.tag_type for n in result.root.iter_nodes()] == [ROOT_TAG, "div", "p"]
        assert result.root.text_content() == "Real text"

    def test_self_closing_script_does_not_swallow_document(
        self, builder: ContentTreeBuilder
    ) -> None:
        """Test that <script src=.../> closes its excluded region at once."""
        html = (
            '<html><head><script src="a.js"/></head><body>'
            '<div id="content"><p>Alpha, beta, gamma.</p></div></body></html>'
        )

        result = builder.build(_tokens(html))

        assert result.root.find_by_type("script") == []
        content = result.root.find_by_type("div")[0]
        assert content.attributes["id"] == "content"
        assert content.text_content() == "Alpha, beta, gamma."

    def test_self_closing_iframe_keeps_following_content(
        self, builder: ContentTreeBuilder
    ) -> None:
        """Test a self-closed excluded element followed by siblings."""
        result = builder.build(_tokens('<div><iframe src="x"/><p>Real text here.</p></div>'))

        assert [n.tag_type for n in result.root.iter_nodes()] == [ROOT_TAG, "div", "p"]
        assert result.root.text_content() == "Real text here."

    def test_self_closing_excluded_inside_excluded_region(
        self, builder: ContentTreeBuilder
    ) -> None:
        """Test that a nested self-closed excluded tag keeps the outer region."""
        html = "<div><object><iframe/><p>hidden text</p></object><p>shown text</p></div>"

        result = builder.build(_tokens(html))

        assert [p.text for p in result.root.find_by_type("p")] == ["shown text"]

    def test_meta_is_skipped_without_swallowing_content(
        self, builder: ContentTreeBuilder
    ) -> None:
        """Test that the void excluded meta tag opens no excluded region."""
        result = builder.build(_tokens('<div><meta charset="utf-8"><p>kept text</p></div>'))
        assert result.root.text_content() == "kept text"
        assert result.root.find_by_type("meta") == []

    def test_child_offsets_follow_document_order(
        self, builder: ContentTreeBuilder
    ) -> None:
        """Test that children are attached at non-decreasing text offsets."""
        html = "<div>aa<p>bbb</p>cc<br>dd<span>ee</span>ff</div>"

        result = builder.build(_tokens(html))

        for node in result.root.iter_nodes():
            offsets = [child.insert_offset for child in node.children]
            assert offsets == sorted(offsets)
        div = result.root.find_by_type("div")[0]
        assert div.text == "aa cc dd ff"
        assert [c.insert_offset for c in div.children] == [2, 5, 8]

    def test_text_view_matches_text_tokens(self, builder: ContentTreeBuilder) -> None:
        """Test that the text view reproduces the document's text in order."""
        html = "<div>aa<p>bbb</p>cc<br>dd<span>ee</span>ff</div>"
        tokens = _tokens(html)
        texts = [t.value.strip() for t in tokens if t.type == TokenType.TEXT]

        result = builder.build(tokens)

        assert result.root.text_content() == " ".join(texts)
        assert result.root.text_content() == "aa bbb cc dd ee ff"
        assert result.root.html_content() == (
            "<div>aa<p>bbb</p> cc<br> dd<span>ee</span> ff</div>"
        )

    def test_short_text_is_dropped(self, builder: ContentTreeBuilder) -> None:
        """Test the minimum text length."""
        result = builder.build(_tokens("<p> x </p><p>ok</p>"))
        texts = [p.text for p in result.root.find_by_type("p")]
        assert texts == ["", "ok"]

    def test_min_text_length_is_configurable(self) -> None:
        """Test a custom text threshold."""
        builder = ContentTreeBuilder(BuilderConfig(min_text_length=0))
        result = builder.build(_tokens("<p>x</p>"))
        assert result.root.find_by_type("p")[0].text == "x"


class TestScoringAndPruning:
    """Test scoring and pruning during the build."""

    def test_sidebar_page(self, builder: ContentTreeBuilder) -> None:
        """Test scores and pruning on a page with a sidebar."""
        result = builder.build(_tokens(SIDEBAR_PAGE))

        divs = result.root.find_by_type("div")
        assert [d.attributes["id"] for d in divs] == ["content"]
        assert divs[0].score == pytest.approx(32.12)

        body = result.root.find_by_type("body")[0]
        # 0.5 * 3.28 from the pruned sidebar paragraph plus 0.5 * 2.12
        assert body.score == pytest.approx(2.70)

        top = select_top_node(result.root)
        assert top is divs[0]
        assert top.html_content() == "<div id='content'><p>Alpha, beta.</p></div>"

    def test_metrics(self, builder: ContentTreeBuilder) -> None:
        """Test counters collected during the build."""
        result = builder.build(_tokens(SIDEBAR_PAGE))

        assert result.performance.nodes_created == 6
        assert result.performance.nodes_pruned == 1
        assert result.performance.paragraphs_scored == 2
        assert result.performance.tokens_processed == len(_tokens(SIDEBAR_PAGE))

    def test_pruning_disabled(self) -> None:
        """Test that boilerplate survives when pruning is off."""
        builder = ContentTreeBuilder(pruning=PruningPolicy(PruningConfig(enabled=False)))
        result = builder.build(_tokens(SIDEBAR_PAGE))

        ids = [d.attributes["id"] for d in result.root.find_by_type("div")]
        assert ids == ["sidebar", "content"]
        assert result.performance.nodes_pruned == 0

    def test_header_is_pruned(self, builder: ContentTreeBuilder) -> None:
        """Test pruning by tag."""
        result = builder.build(_tokens(
            "<body><header><p>Site name</p></header><p>Body text</p></body>"
        ))
        assert result.root.find_by_type("header") == []
        assert result.root.text_content() == "Body text"


class TestMalformedInput:
    """Test tolerance of broken token streams."""

    def test_orphaned_end_tag(self, builder: ContentTreeBuilder) -> None:
        """Test that an end tag with nothing open is reported and ignored."""
        result = builder.build(_tokens("</div><p>text here</p>"))

        warnings = result.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)
        assert len(warnings) == 1
        assert warnings[0].message == "Orphaned end tag </div> ignored"
        assert warnings[0].position == {"line": 1, "column": 1}
        assert result.root.find_by_type("p")[0].text == "text here"

    def test_mismatched_end_tag_closes_top(self, builder: ContentTreeBuilder) -> None:
        """Test that an end tag closes whatever element is open."""
        result = builder.build(_tokens("<div><b>bold text</div><p>next one</p>"))

        div = result.root.find_by_type("div")[0]
        assert [c.tag_type for c in div.children] == ["b", "p"]

    def test_unclosed_elements_reported(self, builder: ContentTreeBuilder) -> None:
        """Test the informational diagnostic for elements left open."""
        result = builder.build(_tokens("<div><p>never closed"))

        info = result.get_diagnostics_by_severity(DiagnosticSeverity.INFO)
        assert info[0].message == "2 elements were still open at end of stream"
        assert result.success
        assert not result.has_errors()

    def test_error_token_stops_build(self, builder: ContentTreeBuilder) -> None:
        """Test that a tokenizer failure ends the build with an error."""
        tokens = [
            Token(TokenType.START_TAG, "p"),
            Token(TokenType.TEXT, "before"),
            Token(TokenType.ERROR, "Tokenizer failure: boom"),
            Token(TokenType.TEXT, "after"),
        ]

        result = builder.build(tokens)

        assert result.success
        assert result.has_errors()
        assert result.root.find_by_type("p")[0].text == "before"
        assert result.performance.tokens_processed == 3

    def test_stream_without_eof(self, builder: ContentTreeBuilder) -> None:
        """Test that an exhausted iterable also ends the build."""
        result = builder.build([Token(TokenType.START_TAG, "div")])
        assert result.root.children[0].tag_type == "div"

    def test_exception_returns_partial_tree(self, builder: ContentTreeBuilder) -> None:
        """Test the never-fail guarantee on an unexpected exception."""
        def tokens():
            yield Token(TokenType.START_TAG, "div")
            raise RuntimeError("source exploded")

        result = builder.build(tokens())

        assert not result.success
        critical = result.get_diagnostics_by_severity(DiagnosticSeverity.CRITICAL)
        assert critical[0].message == "Tree building failed: source exploded"
        assert result.root.children[0].tag_type == "div"

    def test_builder_is_reusable(self, builder: ContentTreeBuilder) -> None:
        """Test that state is reset between builds."""
        builder.build(_tokens("<div><p>first document"))
        result = builder.build([Token(TokenType.ERROR, EOF_VALUE)])

        assert result.root.is_leaf
        assert result.diagnostics == []
        assert result.performance.tokens_processed == 1
