"""Chunked text input for the tokenizer with a never-fail guarantee.

Raw input may arrive as text, bytes, an open file or a path. The processor
detects the encoding from a leading sample and then yields decoded text chunks
so that the tokenizer and tree builder can work in a single forward pass.
"""

import codecs
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, TextIO, Union

from robust_content_extractor.shared.config import CharacterConfig

from .encoding import DetectionMethod, EncodingDetector, EncodingResult

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]

_BOM_CHAR = "\ufeff"


@dataclass
class StreamingResult:
    """Decoded text stream plus what was learned while opening it.

    Attributes:
        chunks: Iterator of decoded text chunks, consumed once
        encoding: Encoding detection result
        diagnostics: Messages collected while detecting and decoding
        metadata: Input description (type, chunk size, source name)
    """
    chunks: Iterator[str]
    encoding: EncodingResult
    diagnostics: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    characters_read: int = 0

    def __iter__(self) -> Iterator[str]:
        for chunk in self.chunks:
            self.characters_read += len(chunk)
            yield chunk

    def read_all(self) -> str:
        """Consume the remaining chunks and return them joined."""
        return "".join(self)


class CharacterStreamProcessor:
    """Turns any supported input into a stream of decoded text chunks."""

    def __init__(self, config: Optional[CharacterConfig] = None) -> None:
        """Initialize the character stream processor.

        Args:
            config: Character configuration (defaults used when omitted)
        """
        self.config = config or CharacterConfig()
        self._encoding_detector = EncodingDetector(
            fallback_encoding=self.config.fallback_encoding,
            sample_size=self.config.detection_sample_size,
        )

    def open(
        self,
        input_data: InputType,
        declared_encoding: Optional[str] = None
    ) -> StreamingResult:
        """Open ``input_data`` as a chunked text stream.

        Args:
            input_data: Text, bytes, file-like object or filesystem path
            declared_encoding: Charset announced out of band for byte input

        Returns:
            StreamingResult whose chunks are produced lazily
        """
        if isinstance(input_data, str):
            return self._open_string(input_data)
        if isinstance(input_data, (bytes, bytearray)):
            return self._open_bytes(bytes(input_data), declared_encoding)
        if isinstance(input_data, Path):
            return self._open_path(input_data, declared_encoding)
        if hasattr(input_data, "read"):
            return self._open_file(input_data, declared_encoding)
        raise TypeError(f"Unsupported input type: {type(input_data).__name__}")

    def _open_string(self, text: str) -> StreamingResult:
        chunk_size = self.config.chunk_size

        def chunk_generator() -> Iterator[str]:
            start = 1 if text.startswith(_BOM_CHAR) else 0
            for offset in range(start, len(text), chunk_size):
                yield text[offset:offset + chunk_size]

        return StreamingResult(
            chunks=chunk_generator(),
            encoding=EncodingResult(
                encoding="utf-8", confidence=1.0, method=DetectionMethod.DECLARED
            ),
            metadata={"input_type": "str", "chunk_size": chunk_size},
        )

    def _open_bytes(self, data: bytes, declared: Optional[str]) -> StreamingResult:
        encoding_result = self._encoding_detector.detect(data, declared)
        return StreamingResult(
            chunks=self._decode_chunks(iter([data]), encoding_result.encoding),
            encoding=encoding_result,
            diagnostics=[
                f"Encoding detection: {issue}" for issue in encoding_result.issues
            ],
            metadata={"input_type": "bytes", "byte_count": len(data)},
        )

    def _open_path(self, path: Path, declared: Optional[str]) -> StreamingResult:
        # Read the sample eagerly so a missing file fails here, not mid-build
        file_obj = path.open("rb")
        try:
            sample = file_obj.read(self.config.detection_sample_size)
        except OSError:
            file_obj.close()
            raise
        encoding_result = self._encoding_detector.detect(sample, declared)

        def raw_chunks() -> Iterator[bytes]:
            with file_obj:
                yield sample
                yield from iter(lambda: file_obj.read(self.config.chunk_size), b"")

        return StreamingResult(
            chunks=self._decode_chunks(raw_chunks(), encoding_result.encoding),
            encoding=encoding_result,
            diagnostics=[
                f"Encoding detection: {issue}" for issue in encoding_result.issues
            ],
            metadata={"input_type": "path", "source": str(path)},
        )

    def _open_file(
        self,
        file_obj: Union[BinaryIO, TextIO],
        declared: Optional[str]
    ) -> StreamingResult:
        sample = file_obj.read(self.config.detection_sample_size)

        if isinstance(sample, str):
            def text_chunks() -> Iterator[str]:
                first = sample[1:] if sample.startswith(_BOM_CHAR) else sample
                if first:
                    yield first
                yield from iter(lambda: file_obj.read(self.config.chunk_size), "")

            return StreamingResult(
                chunks=text_chunks(),
                encoding=EncodingResult(
                    encoding=getattr(file_obj, "encoding", None) or "utf-8",
                    confidence=1.0,
                    method=DetectionMethod.DECLARED,
                ),
                metadata={"input_type": "text_file"},
            )

        encoding_result = self._encoding_detector.detect(sample, declared)

        def raw_chunks() -> Iterator[bytes]:
            yield sample
            yield from iter(lambda: file_obj.read(self.config.chunk_size), b"")

        return StreamingResult(
            chunks=self._decode_chunks(raw_chunks(), encoding_result.encoding),
            encoding=encoding_result,
            diagnostics=[
                f"Encoding detection: {issue}" for issue in encoding_result.issues
            ],
            metadata={"input_type": "binary_file"},
        )

    def _decode_chunks(self, raw: Iterator[bytes], encoding: str) -> Iterator[str]:
        # Incremental decoding keeps multi-byte sequences split across reads intact
        decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        first = True
        for chunk in raw:
            text = decoder.decode(chunk)
            if first and text:
                if text.startswith(_BOM_CHAR):
                    text = text[1:]
                first = False
            if text:
                yield text
        tail = decoder.decode(b"", final=True)
        if tail:
            yield tail
