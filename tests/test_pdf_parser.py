"""
Unit tests for pdfquiz/pdf_parser.py
Tests: text normalization (whitespace, newlines, control characters,
idempotence), magic-byte validation, extraction from real PDFs written
with PyMuPDF, and the failure cases that raise ExtractionError.
"""

import pytest

from pdfquiz.errors import ExtractionError
from pdfquiz.pdf_parser import PDFParser, is_valid_pdf, normalize_text


# ── normalize_text ───────────────────────────────────────────────────────────

class TestNormalizeText:

    def test_collapses_spaces_and_tabs(self):
        assert normalize_text("a   b\t\tc") == "a b c"

    def test_collapses_newline_runs(self):
        assert normalize_text("line one\n\n\n\nline two") == "line one\nline two"

    def test_strips_control_characters(self):
        assert normalize_text("ab\x00c\x07d\x1fe\x7f") == "abcde"

    def test_mixed_whitespace(self):
        assert normalize_text("a\t\tb  \n\n\n c\x00d") == "a b\ncd"

    def test_carriage_returns_become_newlines(self):
        assert normalize_text("one\r\ntwo\rthree") == "one\ntwo\nthree"

    def test_trims_ends(self):
        assert normalize_text("  \n padded text \n ") == "padded text"

    def test_empty(self):
        assert normalize_text("") == ""
        assert normalize_text(" \n\t ") == ""

    @pytest.mark.parametrize("raw", [
        "Plain sentence.",
        "  spaced   out \n\n text\t here ",
        "ctrl\x01chars \x02 and\n \n\nnewlines",
        "unicode\u00a0space and\u2003em space",
        "\r\n\r\nwindows\r\nlines\r\n",
    ])
    def test_idempotent(self, raw):
        once = normalize_text(raw)
        assert normalize_text(once) == once


# ── is_valid_pdf ─────────────────────────────────────────────────────────────

class TestIsValidPdf:

    def test_real_pdf(self, make_pdf):
        assert is_valid_pdf(make_pdf(["hello"])) is True

    def test_wrong_magic_bytes(self, tmp_path):
        path = tmp_path / "fake.pdf"
        path.write_text("just some text")
        assert is_valid_pdf(path) is False

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.pdf"
        path.write_bytes(b"")
        assert is_valid_pdf(path) is False

    def test_missing_file(self, tmp_path):
        assert is_valid_pdf(tmp_path / "missing.pdf") is False


# ── PDFParser.extract ────────────────────────────────────────────────────────

class TestExtract:

    def test_extracts_text(self, make_pdf):
        path = make_pdf(["Paris is the capital of France."])
        assert PDFParser().extract(path) == "Paris is the capital of France."

    def test_joins_pages(self, make_pdf):
        path = make_pdf(["First page text.", "Second page text."])
        text = PDFParser().extract(path)
        assert "First page text." in text
        assert "Second page text." in text
        assert text.index("First") < text.index("Second")

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ExtractionError, match="not found"):
            PDFParser().extract(tmp_path / "missing.pdf")

    def test_not_a_pdf_raises(self, tmp_path):
        path = tmp_path / "notes.pdf"
        path.write_text("plain text pretending to be a pdf")
        with pytest.raises(ExtractionError, match="Not a valid PDF"):
            PDFParser().extract(path)

    def test_damaged_pdf_raises(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"%PDF-1.7\nthis is not really a pdf body")
        with pytest.raises(ExtractionError):
            PDFParser().extract(path)

    def test_pdf_without_text_raises(self, make_pdf):
        path = make_pdf([""])
        with pytest.raises(ExtractionError, match="no extractable text"):
            PDFParser().extract(path)

    def test_min_text_chars(self, make_pdf):
        path = make_pdf(["Too short."])
        with pytest.raises(ExtractionError, match="too little text"):
            PDFParser(min_text_chars=100).extract(path)


class TestExtractMetadata:

    def test_page_count(self, make_pdf):
        meta = PDFParser().extract_metadata(make_pdf(["one", "two", "three"]))
        assert meta["page_count"] == 3
        assert meta["text_length"] > 0

    def test_unreadable_returns_empty(self, tmp_path):
        assert PDFParser().extract_metadata(tmp_path / "missing.pdf") == {}
