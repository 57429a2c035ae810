# builds the quiz generation prompt sent to the llm
import re
from collections import Counter
from typing import Union

from .models import Difficulty

# hard cap on source text embedded in one prompt
MAX_PROMPT_SOURCE_CHARS = 4000

SYSTEM_PROMPT = (
    "You are an expert at writing educational multiple-choice quizzes. "
    "Always answer with a single valid JSON object and nothing else."
)

# words ignored when guessing the topic of a text
STOP_WORDS = {
    'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by',
    'a', 'an', 'is', 'are', 'was', 'were', 'be', 'been', 'have', 'has', 'had',
    'do', 'does', 'did', 'will', 'would', 'could', 'should', 'may', 'might',
    'can', 'must', 'that', 'this', 'these', 'those', 'from', 'which', 'their',
    'there', 'they', 'also', 'into', 'than', 'then', 'when', 'what', 'where',
}

_WORD_RE = re.compile(r"[^\W\d_]+")


def infer_topic(text: str, max_words: int = 3) -> str:
    """Guess a topic from the most frequent meaningful words of the text"""
    counts = Counter(
        word for word in _WORD_RE.findall(text.lower())
        if len(word) > 3 and word not in STOP_WORDS
    )
    words = [word for word, _ in counts.most_common(max_words)]
    return ", ".join(words) if words else "general"


def build_quiz_prompt(chunk: str, num_questions: int,
                      difficulty: Union[Difficulty, str], topic: str) -> str:
    """Render the instruction prompt for one chunk of source text"""
    level = difficulty.value if isinstance(difficulty, Difficulty) else str(difficulty)
    source = chunk[:MAX_PROMPT_SOURCE_CHARS]

    return f"""You are an expert at creating educational quizzes. Analyse the text below and write exactly {num_questions} multiple-choice quiz questions.

MANDATORY REQUIREMENTS:
1. Write exactly {num_questions} questions, numbered from 1 to {num_questions}
2. Every question has exactly 4 options keyed "A", "B", "C" and "D"
3. Exactly one option is correct; put its key in "correctAnswer"
4. Questions must be about the content of the text
5. Difficulty level: {level}
6. Topic: {topic}
7. Wrong options must be plausible but clearly incorrect
8. Avoid questions that are too obvious or too specific

OUTPUT FORMAT (VALID JSON):
{{
  "title": "A title based on the content of the text",
  "questions": [
    {{
      "number": 1,
      "question": "Clear and precise question text",
      "options": {{
        "A": "First option",
        "B": "Second option",
        "C": "Third option",
        "D": "Fourth option"
      }},
      "correctAnswer": "A"
    }}
  ]
}}

TEXT TO ANALYSE:
{source}

IMPORTANT: Reply ONLY with a single JSON object matching the format above, with no text before or after it. The JSON must be directly parseable."""
