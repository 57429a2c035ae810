# splits long text into sentence-aligned chunks that fit one llm call
import logging
import re
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_LENGTH = 4096
DEFAULT_CHARS_PER_TOKEN = 3.5

# sentence ends at . ! or ? followed by whitespace
_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")


def chunk_budget(context_length: Optional[int],
                 chars_per_token: float = DEFAULT_CHARS_PER_TOKEN) -> int:
    """Character budget for one chunk given the model context length in tokens"""
    if not context_length or context_length <= 0:
        context_length = DEFAULT_CONTEXT_LENGTH
    return max(1, int(context_length * chars_per_token))


def _split_sentences(text: str) -> List[str]:
    return [s for s in _SENTENCE_END_RE.split(text) if s.strip()]


def split_text(text: str, max_chunk_chars: int) -> List[str]:
    """Split text greedily on sentence boundaries into chunks of at most max_chunk_chars"""
    if max_chunk_chars <= 0:
        raise ValueError("max_chunk_chars must be positive")
    if len(text) <= max_chunk_chars:
        return [text]

    chunks = []
    current = ""

    for sentence in _split_sentences(text.strip()):
        candidate = f"{current} {sentence}" if current else sentence
        if len(candidate) <= max_chunk_chars:
            current = candidate
            continue

        if current:
            chunks.append(current)
            current = ""

        # a sentence longer than the budget is cut at the character boundary
        while len(sentence) > max_chunk_chars:
            chunks.append(sentence[:max_chunk_chars])
            sentence = sentence[max_chunk_chars:]
        current = sentence

    if current.strip():
        chunks.append(current)

    logger.debug(f"Split {len(text)} characters into {len(chunks)} chunks of <= {max_chunk_chars}")
    return chunks
