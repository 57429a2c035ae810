# pydantic models for quizzes, generation requests and provider settings
from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
)

# the only option labels a question may carry
OPTION_KEYS = ("A", "B", "C", "D")

# enum for quiz difficulty levels
class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

# enum for the supported llm backends
class ProviderKind(str, Enum):
    LOCAL_LLM = "local-llm"
    HOSTED_API = "hosted-api"

    @classmethod
    def _missing_(cls, value):
        # accept the backend names used in older config files
        aliases = {"ollama": cls.LOCAL_LLM, "openai": cls.HOSTED_API}
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None

# model for a single multiple-choice question
class Question(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    number: int = Field(gt=0, strict=True)
    prompt: str = Field(alias="question")
    options: Dict[str, str]
    correct_answer: Literal["A", "B", "C", "D"] = Field(alias="correctAnswer")

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("question text must not be empty")
        return value

    @field_validator("options")
    @classmethod
    def _exactly_four_options(cls, value: Dict[str, str]) -> Dict[str, str]:
        if set(value) != set(OPTION_KEYS) or len(value) != len(OPTION_KEYS):
            raise ValueError(
                f"options must have exactly the keys A, B, C, D (got {sorted(value)})"
            )
        return value

# model for a complete quiz document
class Quiz(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # older quiz files use "quizTitle"
    title: str = Field(validation_alias=AliasChoices("title", "quizTitle"), strict=True)
    questions: List[Question]

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be empty")
        return value

    @field_validator("questions")
    @classmethod
    def _has_questions(cls, value: List[Question]) -> List[Question]:
        if not value:
            raise ValueError("quiz must contain at least one question")
        return value

    # serialise to the on-disk quiz file shape
    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)

# request model for one generation job
class GenerationRequest(BaseModel):
    source_text: str
    num_questions: int = Field(default=10, gt=0)
    difficulty: Difficulty = Difficulty.MEDIUM
    topic: str = ""

# connection settings for one llm backend, optionally chained to a fallback
class ProviderConfig(BaseModel):
    provider: ProviderKind = ProviderKind.LOCAL_LLM
    endpoint: str = "http://localhost:11434"
    model: str = "llama3"
    temperature: float = 0.3
    max_tokens: int = 2000
    timeout_ms: int = 60000
    api_key: Optional[str] = None
    fallback: Optional["ProviderConfig"] = None

    @model_validator(mode="after")
    def _single_fallback_hop(self):
        # a fallback is tried once; it never carries a fallback of its own
        if self.fallback is not None and self.fallback.fallback is not None:
            raise ValueError("a fallback provider cannot have its own fallback")
        return self

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

# model for a slice of source text and the questions it should yield
class Chunk(BaseModel):
    index: int
    text: str
    num_questions: int = 0

# response model for a generation job
class ImportResult(BaseModel):
    success: bool
    quiz_file: Optional[str] = None
    error: Optional[str] = None
    title: Optional[str] = None
    num_questions: int = 0
    pages: int = 0
    text_length: int = 0
    processing_time: float = 0.0
    generated_at: str = Field(default_factory=lambda: datetime.now().isoformat())

# response model for the provider health check
class HealthStatus(BaseModel):
    reachable: bool
    provider: Optional[str] = None
    endpoint: Optional[str] = None

# listing entry for a stored quiz
class QuizSummary(BaseModel):
    filename: str
    path: str
    title: str
    questions_count: int
    size: int
    modified_at: datetime
    error: Optional[str] = None

# aggregate numbers over the quiz store
class StoreStatistics(BaseModel):
    total_quizzes: int = 0
    total_questions: int = 0
    average_questions: int = 0
    total_size: int = 0
    average_size: int = 0
    newest_quiz: Optional[datetime] = None
    oldest_quiz: Optional[datetime] = None
