"""Tests for the streaming HTML tokenizer."""

from typing import List

import pytest

from robust_content_extractor.tokenization import (
    EOF_VALUE,
    HTMLTokenizer,
    Token,
    TokenizationResult,
    TokenPosition,
    TokenType,
)


def _types(tokens: List[Token]) -> List[TokenType]:
    return [token.type for token in tokens]


class TestTokenModel:
    """Test token value objects."""

    def test_position_validation(self) -> None:
        """Test that positions are 1-based."""
        with pytest.raises(ValueError, match="Line number"):
            TokenPosition(line=0, column=1)
        with pytest.raises(ValueError, match="Column number"):
            TokenPosition(line=1, column=0)

    def test_get_attribute_last_duplicate_wins(self) -> None:
        """Test attribute lookup with repeated names."""
        token = Token(TokenType.START_TAG, "div", [("class", "a"), ("class", "b")])
        assert token.get_attribute("class") == "b"
        assert token.get_attribute("id") == ""
        assert token.get_attribute("id", "none") == "none"

    def test_eof_and_terminal(self) -> None:
        """Test terminal token helpers."""
        eof = Token(TokenType.ERROR, EOF_VALUE)
        failure = Token(TokenType.ERROR, "Tokenizer failure: boom")
        text = Token(TokenType.TEXT, "EOF")

        assert eof.is_terminal and eof.is_eof
        assert failure.is_terminal and not failure.is_eof
        assert not text.is_terminal and not text.is_eof

    def test_result_statistics(self) -> None:
        """Test TokenizationResult counters."""
        result = TokenizationResult(tokens=[
            Token(TokenType.START_TAG, "p"),
            Token(TokenType.TEXT, "hi"),
            Token(TokenType.ERROR, "Tokenizer failure: boom"),
            Token(TokenType.ERROR, EOF_VALUE),
        ])

        assert result.token_count == 4
        assert result.error_count == 1
        assert result.type_distribution == {"START_TAG": 1, "TEXT": 1, "ERROR": 2}


class TestHTMLTokenizer:
    """Test tokenization of complete documents."""

    @pytest.fixture
    def tokenizer(self) -> HTMLTokenizer:
        return HTMLTokenizer(correlation_id="tok-test")

    def test_simple_element(self, tokenizer: HTMLTokenizer) -> None:
        """Test a start tag, text and end tag."""
        result = tokenizer.tokenize('<p class="lead" id=intro>Hi &amp; bye</p>')

        assert result.success
        assert _types(result.tokens) == [
            TokenType.START_TAG, TokenType.TEXT, TokenType.END_TAG, TokenType.ERROR,
        ]
        start = result.tokens[0]
        assert start.value == "p"
        assert start.attributes == [("class", "lead"), ("id", "intro")]
        assert result.tokens[1].value == "Hi & bye"
        assert result.tokens[-1].is_eof

    def test_tag_names_lowercased(self, tokenizer: HTMLTokenizer) -> None:
        """Test that tag and attribute names are lower-cased."""
        tokens = tokenizer.tokenize('<DIV CLASS="Main"></DIV>').tokens
        assert tokens[0].value == "div"
        assert tokens[0].attributes == [("class", "Main")]
        assert tokens[1].value == "div"

    def test_valueless_attribute(self, tokenizer: HTMLTokenizer) -> None:
        """Test that attributes without a value get an empty string."""
        tokens = tokenizer.tokenize("<input disabled>").tokens
        assert tokens[0].attributes == [("disabled", "")]

    def test_self_closing_emits_start_then_self_closing(
        self, tokenizer: HTMLTokenizer
    ) -> None:
        """Test that <x/> produces both events."""
        tokens = tokenizer.tokenize("<span/>").tokens
        assert _types(tokens) == [
            TokenType.START_TAG, TokenType.SELF_CLOSING_TAG, TokenType.ERROR,
        ]
        assert tokens[1].value == "span"

    def test_doctype_and_comment(self, tokenizer: HTMLTokenizer) -> None:
        """Test declarations and comments."""
        tokens = tokenizer.tokenize("<!DOCTYPE html><!-- note --><p>x</p>").tokens
        assert tokens[0].type == TokenType.DOCTYPE
        assert tokens[0].value == "DOCTYPE html"
        assert tokens[1].type == TokenType.COMMENT
        assert tokens[1].value == " note "

    def test_positions(self, tokenizer: HTMLTokenizer) -> None:
        """Test line and column reporting."""
        tokens = tokenizer.tokenize("<div>\n  <p>Hi</p></div>").tokens
        paragraph = [t for t in tokens if t.type == TokenType.START_TAG][1]
        assert paragraph.position == TokenPosition(line=2, column=3)
        assert tokens[0].position == TokenPosition(line=1, column=1)

    def test_empty_document(self, tokenizer: HTMLTokenizer) -> None:
        """Test that an empty document yields only the EOF marker."""
        result = tokenizer.tokenize("")
        assert result.tokens == [Token(TokenType.ERROR, EOF_VALUE)]
        assert result.success


class TestStreamingTokenization:
    """Test chunked, lazy tokenization."""

    def test_text_split_across_chunks_is_joined(self) -> None:
        """Test that a text run cut by a chunk boundary stays one token."""
        tokens = list(HTMLTokenizer().iter_tokens(["<p>Hel", "lo</p>"]))

        texts = [t.value for t in tokens if t.type == TokenType.TEXT]
        assert texts == ["Hello"]

    def test_tag_split_across_chunks(self) -> None:
        """Test that a tag cut by a chunk boundary is reassembled."""
        tokens = list(HTMLTokenizer().iter_tokens(['<div cla', 'ss="x">ok</div>']))
        assert tokens[0].value == "div"
        assert tokens[0].get_attribute("class") == "x"

    def test_tokens_are_yielded_lazily(self) -> None:
        """Test that tokens from the first chunk arrive before later chunks are read."""
        consumed: List[str] = []

        def chunks():
            for chunk in ["<div>", "<p>", "text</p></div>"]:
                consumed.append(chunk)
                yield chunk

        iterator = HTMLTokenizer().iter_tokens(chunks())
        first = next(iterator)

        assert first.value == "div"
        assert consumed == ["<div>"]

    def test_trailing_text_flushed_at_end(self) -> None:
        """Test that text with no following tag is still emitted."""
        tokens = list(HTMLTokenizer().iter_tokens(["<p>tail ", "text"]))
        assert tokens[-2] == Token(
            TokenType.TEXT, "tail text", [], tokens[-2].position
        )
        assert tokens[-1].is_eof

    def test_failure_ends_stream_with_error(self) -> None:
        """Test that a tokenizer failure becomes a terminal ERROR token."""
        tokens = list(HTMLTokenizer().iter_tokens(["<p>ok</p>", 123]))  # type: ignore[list-item]

        assert _types(tokens[:3]) == [
            TokenType.START_TAG, TokenType.TEXT, TokenType.END_TAG,
        ]
        assert tokens[-1].type == TokenType.ERROR
        assert tokens[-1].value.startswith("Tokenizer failure:")
        assert not tokens[-1].is_eof
