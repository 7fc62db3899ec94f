"""Character processing layer for the content extractor.

Detects the encoding of raw input and turns it into decoded text chunks for
the tokenizer.
"""

from .encoding import (
    DetectionMethod,
    EncodingDetector,
    EncodingResult,
    decode_bytes,
    normalize_encoding,
)
from .stream import (
    CharacterStreamProcessor,
    InputType,
    StreamingResult,
)

__all__ = [
    "DetectionMethod",
    "EncodingDetector",
    "EncodingResult",
    "decode_bytes",
    "normalize_encoding",
    "CharacterStreamProcessor",
    "InputType",
    "StreamingResult",
]
