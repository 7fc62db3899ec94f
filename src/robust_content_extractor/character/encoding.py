"""Encoding detection for raw HTML bytes with a never-fail guarantee.

Detection cascades through: an explicitly declared charset (usually from the
HTTP Content-Type header), a byte order mark, a ``<meta>`` charset declaration
near the top of the document, strict UTF-8 validation, and finally the
configured fallback encoding.
"""

import codecs
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple

_DEFAULT_SAMPLE_SIZE = 2048
_BOM_CHAR = "\ufeff"


class DetectionMethod(Enum):
    """Enumeration of encoding detection methods."""
    DECLARED = "declared"
    BOM = "bom"
    META_DECLARATION = "meta_declaration"
    UTF8_VALIDATION = "utf8_validation"
    FALLBACK = "fallback"


@dataclass
class EncodingResult:
    """Result of encoding detection.

    Attributes:
        encoding: Codec name usable with ``bytes.decode``
        confidence: Confidence score from 0.0 to 1.0
        method: Detection method used
        issues: Problems noticed while detecting
    """
    encoding: str
    confidence: float
    method: DetectionMethod
    issues: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate confidence score range."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be between 0.0 and 1.0, got {self.confidence}"
            )


def normalize_encoding(name: Optional[str]) -> Optional[str]:
    """Return the canonical codec name for ``name`` or None if unknown."""
    if not name:
        return None
    cleaned = name.strip().strip("\"'").lower()
    if not cleaned:
        return None
    try:
        return codecs.lookup(cleaned).name
    except LookupError:
        return None


class BOMDetector:
    """Byte Order Mark (BOM) detection for all major encodings."""

    BOM_PATTERNS: ClassVar[Dict[bytes, str]] = {
        b"\xef\xbb\xbf": "utf-8",
        b"\xff\xfe": "utf-16-le",
        b"\xfe\xff": "utf-16-be",
        b"\xff\xfe\x00\x00": "utf-32-le",
        b"\x00\x00\xfe\xff": "utf-32-be",
    }

    def detect(self, data: bytes) -> Optional[EncodingResult]:
        """Detect encoding based on BOM.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult if BOM detected, None otherwise
        """
        if not data:
            return None

        # UTF-32 LE shares its first two bytes with UTF-16 LE
        for bom_bytes, encoding in sorted(
            self.BOM_PATTERNS.items(), key=lambda x: len(x[0]), reverse=True
        ):
            if data.startswith(bom_bytes):
                return EncodingResult(
                    encoding=encoding,
                    confidence=1.0,
                    method=DetectionMethod.BOM,
                )

        return None


class MetaCharsetParser:
    """Parser for ``<meta charset>`` and ``http-equiv`` content-type declarations."""

    META_PATTERN = re.compile(
        rb"<meta[^>]+charset\s*=\s*[\"']?\s*([a-zA-Z0-9_:.\-]+)",
        re.IGNORECASE
    )

    def __init__(self, sample_size: int = _DEFAULT_SAMPLE_SIZE) -> None:
        self.sample_size = sample_size

    def parse_declaration(self, data: bytes) -> Optional[EncodingResult]:
        """Parse the charset declared in the document head.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult if a declaration was found, None otherwise
        """
        if not data:
            return None

        match = self.META_PATTERN.search(data[:self.sample_size])
        if not match:
            return None

        declared = match.group(1).decode("ascii", errors="ignore")
        encoding = normalize_encoding(declared)
        if encoding is None:
            return EncodingResult(
                encoding="utf-8",
                confidence=0.3,
                method=DetectionMethod.META_DECLARATION,
                issues=[f"Invalid declared encoding: {declared}"]
            )

        return EncodingResult(
            encoding=encoding,
            confidence=0.9,
            method=DetectionMethod.META_DECLARATION,
        )


class UTF8Validator:
    """Strict UTF-8 validation."""

    def validate(self, data: bytes) -> EncodingResult:
        """Check whether ``data`` decodes cleanly as UTF-8."""
        try:
            data.decode("utf-8", errors="strict")
        except UnicodeDecodeError as e:
            # A multi-byte sequence cut at the end of a sample is still UTF-8
            if e.start >= len(data) - 3 and e.reason == "unexpected end of data":
                return EncodingResult(
                    encoding="utf-8",
                    confidence=0.9,
                    method=DetectionMethod.UTF8_VALIDATION,
                    issues=["Truncated multi-byte sequence at end of sample"]
                )
            return EncodingResult(
                encoding="utf-8",
                confidence=0.0,
                method=DetectionMethod.UTF8_VALIDATION,
                issues=[f"UTF-8 decode error: {e}"]
            )

        return EncodingResult(
            encoding="utf-8",
            confidence=1.0,
            method=DetectionMethod.UTF8_VALIDATION,
        )


class EncodingDetector:
    """Main encoding detection class with never-fail guarantee."""

    def __init__(
        self,
        fallback_encoding: str = "windows-1252",
        sample_size: int = _DEFAULT_SAMPLE_SIZE
    ) -> None:
        """Initialize detection components.

        Args:
            fallback_encoding: Codec used when every other stage fails
            sample_size: Number of leading bytes inspected
        """
        self.fallback_encoding = normalize_encoding(fallback_encoding) or "cp1252"
        self.sample_size = sample_size
        self.bom_detector = BOMDetector()
        self.meta_parser = MetaCharsetParser(sample_size)
        self.utf8_validator = UTF8Validator()

    def detect(self, data: bytes, declared: Optional[str] = None) -> EncodingResult:
        """Detect the encoding of ``data``.

        Args:
            data: Byte data (or a leading sample of it)
            declared: Charset announced out of band, e.g. by an HTTP header

        Returns:
            EncodingResult with detected encoding and metadata
        """
        issues: List[str] = []

        declared_encoding = normalize_encoding(declared)
        if declared_encoding:
            return EncodingResult(
                encoding=declared_encoding,
                confidence=0.95,
                method=DetectionMethod.DECLARED,
            )
        if declared:
            issues.append(f"Ignored unknown declared encoding: {declared}")

        if not data:
            return EncodingResult(
                encoding="utf-8",
                confidence=1.0,
                method=DetectionMethod.FALLBACK,
                issues=issues
            )

        bom_result = self.bom_detector.detect(data)
        if bom_result:
            bom_result.issues.extend(issues)
            return bom_result

        meta_result = self.meta_parser.parse_declaration(data)
        if meta_result and not meta_result.issues:
            meta_result.issues.extend(issues)
            return meta_result
        if meta_result:
            issues.extend(meta_result.issues)

        utf8_result = self.utf8_validator.validate(data[:self.sample_size * 4])
        if utf8_result.confidence > 0.0:
            utf8_result.issues.extend(issues)
            return utf8_result

        issues.append(f"Falling back to {self.fallback_encoding}")
        return EncodingResult(
            encoding=self.fallback_encoding,
            confidence=0.5,
            method=DetectionMethod.FALLBACK,
            issues=issues
        )


def decode_bytes(
    data: bytes,
    declared: Optional[str] = None,
    detector: Optional[EncodingDetector] = None
) -> Tuple[str, EncodingResult]:
    """Decode raw HTML bytes to text without ever raising.

    Args:
        data: Raw document bytes
        declared: Charset announced out of band
        detector: Detector to use (a default one is created if omitted)

    Returns:
        Tuple of decoded text and the detection result
    """
    detector = detector or EncodingDetector()
    result = detector.detect(data, declared)
    text = data.decode(result.encoding, errors="replace")
    if text.startswith(_BOM_CHAR):
        text = text[1:]
    return text, result
