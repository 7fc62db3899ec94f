"""HTML tokenization producing a flat stream of tag and text events.

The tokenizer is built on the standard library's ``html.parser.HTMLParser``
and only reports what it sees: it never balances tags or infers missing ones.
Repairing structure is left to the tree builder.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from html.parser import HTMLParser
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from robust_content_extractor.shared import get_logger

EOF_VALUE = "EOF"

Attribute = Tuple[str, str]


class TokenType(Enum):
    """HTML token event kinds."""

    START_TAG = auto()          # <tag ...>
    END_TAG = auto()            # </tag>
    SELF_CLOSING_TAG = auto()   # <tag .../>, always preceded by a START_TAG
    TEXT = auto()               # Character data, references already decoded
    COMMENT = auto()            # <!-- ... -->, processing instructions, CDATA
    DOCTYPE = auto()            # <!DOCTYPE ...>
    ERROR = auto()              # End of stream or tokenizer failure (terminal)


@dataclass
class TokenPosition:
    """Position of a token in the source text."""

    line: int
    column: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")


@dataclass
class Token:
    """A single tokenizer event.

    ``value`` holds the lower-cased tag name for tag events, the character data
    for text and comments, and ``"EOF"`` or an error message for ERROR tokens.
    """

    type: TokenType
    value: str
    attributes: List[Attribute] = field(default_factory=list)
    position: Optional[TokenPosition] = None

    @property
    def is_terminal(self) -> bool:
        """Check if this token ends the stream."""
        return self.type == TokenType.ERROR

    @property
    def is_eof(self) -> bool:
        """Check if this token is the normal end-of-stream marker."""
        return self.type == TokenType.ERROR and self.value == EOF_VALUE

    def get_attribute(self, name: str, default: str = "") -> str:
        """Get the last value given for attribute ``name``."""
        value = default
        for key, attr_value in self.attributes:
            if key == name:
                value = attr_value
        return value


@dataclass
class TokenizationResult:
    """A fully materialised token list with summary statistics."""

    tokens: List[Token]
    success: bool = True
    diagnostics: List[str] = field(default_factory=list)

    @property
    def token_count(self) -> int:
        """Get the total number of tokens."""
        return len(self.tokens)

    @property
    def error_count(self) -> int:
        """Count ERROR tokens that are not the end-of-stream marker."""
        return sum(
            1 for token in self.tokens
            if token.type == TokenType.ERROR and not token.is_eof
        )

    @property
    def type_distribution(self) -> Dict[str, int]:
        """Count tokens per type name."""
        distribution: Dict[str, int] = {}
        for token in self.tokens:
            distribution[token.type.name] = distribution.get(token.type.name, 0) + 1
        return distribution


class _EventCollector(HTMLParser):
    """HTMLParser subclass that records callbacks as tokens."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.pending: List[Token] = []
        # Character data arrives in pieces when a text run spans two chunks
        self._text_parts: List[str] = []
        self._text_position: Optional[TokenPosition] = None

    def _position(self) -> TokenPosition:
        line, offset = self.getpos()
        return TokenPosition(line=max(line, 1), column=offset + 1)

    @staticmethod
    def _attributes(attrs: List[Tuple[str, Optional[str]]]) -> List[Attribute]:
        return [(name, value if value is not None else "") for name, value in attrs]

    def _emit(self, token: Token) -> None:
        self.flush_text()
        self.pending.append(token)

    def flush_text(self) -> None:
        """Turn buffered character data into a single TEXT token."""
        if self._text_parts:
            self.pending.append(
                Token(TokenType.TEXT, "".join(self._text_parts), [], self._text_position)
            )
            self._text_parts = []
            self._text_position = None

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self._emit(
            Token(TokenType.START_TAG, tag, self._attributes(attrs), self._position())
        )

    def handle_startendtag(
        self, tag: str, attrs: List[Tuple[str, Optional[str]]]
    ) -> None:
        position = self._position()
        self._emit(Token(TokenType.START_TAG, tag, self._attributes(attrs), position))
        self._emit(Token(TokenType.SELF_CLOSING_TAG, tag, [], position))

    def handle_endtag(self, tag: str) -> None:
        self._emit(Token(TokenType.END_TAG, tag, [], self._position()))

    def handle_data(self, data: str) -> None:
        if not data:
            return
        if not self._text_parts:
            self._text_position = self._position()
        self._text_parts.append(data)

    def handle_comment(self, data: str) -> None:
        self._emit(Token(TokenType.COMMENT, data, [], self._position()))

    def handle_decl(self, decl: str) -> None:
        self._emit(Token(TokenType.DOCTYPE, decl, [], self._position()))

    def handle_pi(self, data: str) -> None:
        self._emit(Token(TokenType.COMMENT, data, [], self._position()))

    def unknown_decl(self, data: str) -> None:
        self._emit(Token(TokenType.COMMENT, data, [], self._position()))

    def drain(self) -> List[Token]:
        tokens, self.pending = self.pending, []
        return tokens


class HTMLTokenizer:
    """Streaming HTML tokenizer.

    Feeds text chunks to an ``HTMLParser`` and yields the resulting events as
    soon as each chunk has been consumed. The stream always ends with exactly
    one ERROR token: ``"EOF"`` on normal completion, otherwise the failure.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "html_tokenizer")

    def iter_tokens(self, chunks: Iterable[str]) -> Iterator[Token]:
        """Tokenize an iterable of text chunks lazily.

        Args:
            chunks: Decoded document text, in order

        Yields:
            Tokens in document order, terminated by an ERROR token
        """
        collector = _EventCollector()
        try:
            for chunk in chunks:
                collector.feed(chunk)
                yield from collector.drain()
            collector.close()
            collector.flush_text()
            yield from collector.drain()
        except Exception as e:
            # Whatever was tokenized before the failure is still delivered
            self.logger.warning(
                "Tokenizer failed, ending stream early",
                extra={"error": str(e), "exception_type": type(e).__name__}
            )
            collector.flush_text()
            yield from collector.drain()
            yield Token(TokenType.ERROR, f"Tokenizer failure: {e}")
            return

        yield Token(TokenType.ERROR, EOF_VALUE)

    def tokenize(self, text: str) -> TokenizationResult:
        """Tokenize a complete document into a token list.

        Args:
            text: HTML document text

        Returns:
            TokenizationResult containing every token, including the final one
        """
        tokens = list(self.iter_tokens([text]))
        result = TokenizationResult(tokens=tokens)
        if result.error_count:
            result.success = False
            result.diagnostics.extend(
                token.value for token in tokens
                if token.type == TokenType.ERROR and not token.is_eof
            )
        return result
