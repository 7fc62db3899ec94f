"""Tests for the chunked character stream processor."""

import io
from pathlib import Path

import pytest

from robust_content_extractor.character import (
    CharacterStreamProcessor,
    DetectionMethod,
)
from robust_content_extractor.shared import CharacterConfig


@pytest.fixture
def small_chunks() -> CharacterStreamProcessor:
    """Processor with a tiny chunk size to exercise chunk boundaries."""
    return CharacterStreamProcessor(CharacterConfig(chunk_size=4, detection_sample_size=8))


class TestStringInput:
    """Test text input."""

    def test_string_is_chunked(self, small_chunks: CharacterStreamProcessor) -> None:
        """Test that strings are split into chunk_size pieces."""
        stream = small_chunks.open("<p>hello</p>")

        chunks = list(stream)

        assert chunks == ["<p>h", "ello", "</p>"]
        assert stream.characters_read == 12
        assert stream.metadata["input_type"] == "str"

    def test_string_bom_removed(self) -> None:
        """Test that a leading BOM character is dropped."""
        stream = CharacterStreamProcessor().open("\ufeff<p>x</p>")
        assert stream.read_all() == "<p>x</p>"

    def test_empty_string(self) -> None:
        """Test that an empty string yields no chunks."""
        stream = CharacterStreamProcessor().open("")
        assert stream.read_all() == ""
        assert stream.characters_read == 0


class TestBytesInput:
    """Test byte input."""

    def test_multibyte_split_across_chunks(self) -> None:
        """Test that multi-byte characters survive incremental decoding."""
        processor = CharacterStreamProcessor()
        data = "<p>naïve café</p>".encode("utf-8")

        stream = processor.open(data)

        assert stream.read_all() == "<p>naïve café</p>"
        assert stream.encoding.encoding == "utf-8"

    def test_declared_encoding(self) -> None:
        """Test that a declared charset is used for decoding."""
        stream = CharacterStreamProcessor().open(b"<p>\xe9t\xe9</p>", "iso-8859-1")
        assert stream.read_all() == "<p>été</p>"
        assert stream.encoding.method == DetectionMethod.DECLARED

    def test_fallback_reports_diagnostic(self) -> None:
        """Test that falling back is reported as a diagnostic."""
        stream = CharacterStreamProcessor().open(b"<p>caf\xe9 au lait</p>")
        assert stream.read_all() == "<p>café au lait</p>"
        assert "Encoding detection: Falling back to cp1252" in stream.diagnostics

    def test_utf16_bom(self) -> None:
        """Test UTF-16 input with a byte order mark."""
        data = b"\xff\xfe" + "<p>hi</p>".encode("utf-16-le")
        stream = CharacterStreamProcessor().open(data)
        assert stream.read_all() == "<p>hi</p>"
        assert stream.encoding.method == DetectionMethod.BOM


class TestFileInput:
    """Test file-like and path input."""

    def test_binary_file(self, small_chunks: CharacterStreamProcessor) -> None:
        """Test reading a binary file object in chunks."""
        data = "<div>Grüße aus Köln</div>".encode("utf-8")

        stream = small_chunks.open(io.BytesIO(data))

        assert stream.read_all() == "<div>Grüße aus Köln</div>"
        assert stream.metadata["input_type"] == "binary_file"

    def test_text_file(self, small_chunks: CharacterStreamProcessor) -> None:
        """Test reading a text file object."""
        stream = small_chunks.open(io.StringIO("<p>text file</p>"))
        assert stream.read_all() == "<p>text file</p>"
        assert stream.metadata["input_type"] == "text_file"

    def test_path(self, tmp_path: Path) -> None:
        """Test reading from a filesystem path."""
        path = tmp_path / "page.html"
        path.write_bytes(b'<meta charset="latin-1"><p>\xe9l\xe8ve</p>')

        stream = CharacterStreamProcessor(CharacterConfig(chunk_size=4)).open(path)

        assert stream.read_all() == '<meta charset="latin-1"><p>élève</p>'
        assert stream.encoding.method == DetectionMethod.META_DECLARATION
        assert stream.metadata["source"] == str(path)

    def test_missing_path_raises(self, tmp_path: Path) -> None:
        """Test that a missing file fails when the stream is opened."""
        with pytest.raises(OSError):
            CharacterStreamProcessor().open(tmp_path / "missing.html")

    def test_unsupported_type_raises(self) -> None:
        """Test that unsupported input types are rejected."""
        with pytest.raises(TypeError, match="Unsupported input type: int"):
            CharacterStreamProcessor().open(42)  # type: ignore[arg-type]
