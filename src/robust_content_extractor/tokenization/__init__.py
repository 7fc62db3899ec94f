"""Tokenization layer for the content extractor.

Key Components:
    HTMLTokenizer: Streaming tokenizer producing tag, text and terminal events
    Token: A single event with tag name or text, attributes and position
    TokenType: Enumeration of event kinds
    TokenPosition: Line and column of an event
    TokenizationResult: Materialised token list with statistics
"""

from .tokenizer import (
    EOF_VALUE,
    HTMLTokenizer,
    Token,
    TokenizationResult,
    TokenPosition,
    TokenType,
)

__all__ = [
    "EOF_VALUE",
    "HTMLTokenizer",
    "Token",
    "TokenPosition",
    "TokenType",
    "TokenizationResult",
]
