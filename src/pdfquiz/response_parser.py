"""Turns raw LLM output into a validated quiz.

Parsing happens in two stages:

1. lexical extraction: the text between the first ``{`` and the last ``}``
   is taken as the JSON candidate, which tolerates prose and code fences
   around the object
2. strict validation: the decoded object must satisfy the ``Quiz`` model
   (non-empty title and questions, positive numbers, exactly the option
   keys A-D and a correct answer among them)
"""

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from .errors import MalformedResponse, SchemaViolation
from .models import Quiz

logger = logging.getLogger(__name__)

# string literals match first so commas inside them are left alone
_STRING_OR_TRAILING_COMMA_RE = re.compile(r'"(?:[^"\\]|\\.)*"|,(\s*[}\]])', re.DOTALL)


def _drop_trailing_comma(match: re.Match) -> str:
    closing = match.group(1)
    return match.group(0) if closing is None else closing


def extract_json_candidate(raw_text: str) -> str:
    """Return the substring from the first '{' to the last '}' inclusive"""
    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise MalformedResponse("No JSON object found in the model response", raw_text=raw_text)
    return raw_text[start:end + 1]


def _decode(candidate: str, raw_text: str) -> Any:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as first_error:
        # models often leave a trailing comma after the last element
        repaired = _STRING_OR_TRAILING_COMMA_RE.sub(_drop_trailing_comma, candidate)
        if repaired != candidate:
            try:
                return json.loads(repaired)
            except json.JSONDecodeError:
                pass
        raise MalformedResponse(
            f"Model response is not valid JSON: {first_error}", raw_text=raw_text
        ) from first_error


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "quiz"
    return f"{location}: {first['msg']}"


def validate_quiz(data: Any, raw_text: Optional[str] = None) -> Quiz:
    """Check a decoded object against the quiz contract"""
    if not isinstance(data, dict):
        raise SchemaViolation(
            f"Quiz must be a JSON object, got {type(data).__name__}", raw_text=raw_text
        )
    try:
        return Quiz.model_validate(data)
    except ValidationError as e:
        raise SchemaViolation(f"Invalid quiz structure: {_describe(e)}", raw_text=raw_text) from e


def parse_quiz(raw_text: str) -> Quiz:
    """Extract, decode and validate a quiz from raw model output"""
    if raw_text is None:
        raise MalformedResponse("Empty model response", raw_text="")
    candidate = extract_json_candidate(raw_text)
    data = _decode(candidate, raw_text)
    quiz = validate_quiz(data, raw_text=raw_text)
    logger.debug(f"Parsed quiz '{quiz.title}' with {len(quiz.questions)} questions")
    return quiz
