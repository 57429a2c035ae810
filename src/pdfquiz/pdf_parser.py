# pdf text extraction using pymupdf
import fitz  # PyMuPDF
import re
import logging
from pathlib import Path
from typing import Any, Dict, Union

from .errors import ExtractionError

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"

# control characters other than newline, tabs are turned into spaces first
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")
_INLINE_SPACE_RE = re.compile(r"[^\S\n]+")
_NEWLINE_RUN_RE = re.compile(r" ?\n[\n ]*")


# collapse whitespace and strip control characters, idempotent
def normalize_text(text: str) -> str:
    """Clean extracted text so it is safe to embed in a prompt"""
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[\t\f\v]", " ", text)
    text = _CONTROL_RE.sub("", text)
    text = _INLINE_SPACE_RE.sub(" ", text)
    text = _NEWLINE_RUN_RE.sub("\n", text)
    return text.strip()


# check the file exists and starts with the pdf magic bytes
def is_valid_pdf(pdf_path: Union[str, Path]) -> bool:
    path = Path(pdf_path)
    try:
        if not path.is_file() or path.stat().st_size == 0:
            return False
        with open(path, "rb") as fh:
            return fh.read(len(PDF_MAGIC)) == PDF_MAGIC
    except OSError:
        return False


# class for extracting plain text from pdf files
class PDFParser:
    def __init__(self, min_text_chars: int = 1):
        self.min_text_chars = min_text_chars

    # extract and normalize the text of every page
    def extract(self, pdf_path: Union[str, Path]) -> str:
        """Extract cleaned plain text from a PDF"""
        path = Path(pdf_path)
        if not path.exists():
            raise ExtractionError(f"File not found: {path}")
        if not is_valid_pdf(path):
            raise ExtractionError(f"Not a valid PDF file: {path}")

        try:
            with fitz.open(str(path)) as doc:
                pages = [page.get_text() for page in doc]
        except Exception as e:
            # pymupdf raises its own error types for damaged files
            logger.error(f"Error parsing PDF {path}: {str(e)}")
            raise ExtractionError(f"Could not read PDF {path.name}: {e}") from e

        text = normalize_text("\n".join(pages))
        if not text:
            raise ExtractionError(f"The PDF contains no extractable text: {path.name}")
        if len(text) < self.min_text_chars:
            raise ExtractionError(
                f"The PDF contains too little text to build a quiz "
                f"({len(text)} characters, need {self.min_text_chars})"
            )

        logger.info(f"Extracted {len(text)} characters from {len(pages)} pages of {path.name}")
        return text

    # extract page count and document info from pdf
    def extract_metadata(self, pdf_path: Union[str, Path]) -> Dict[str, Any]:
        """Extract metadata from PDF"""
        try:
            with fitz.open(str(pdf_path)) as doc:
                metadata = doc.metadata or {}
                text_length = sum(len(page.get_text()) for page in doc)
                return {
                    'title': metadata.get('title', ''),
                    'author': metadata.get('author', ''),
                    'producer': metadata.get('producer', ''),
                    'creation_date': metadata.get('creationDate', ''),
                    'page_count': doc.page_count,
                    'text_length': text_length,
                }
        except Exception as e:
            logger.error(f"Error extracting metadata from {pdf_path}: {str(e)}")
            return {}
