# exception hierarchy for the pdf to quiz pipeline
from typing import Optional


class QuizGenError(Exception):
    """Base class for every failure raised by pdfquiz"""


# raised when a pdf is missing, not a pdf, or has no usable text
class ExtractionError(QuizGenError):
    pass


# base class for llm backend failures, recoverable through one fallback hop
class ProviderFailure(QuizGenError):
    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider
        self.fallback_error: Optional["ProviderFailure"] = None

    def with_fallback_failure(self, fallback_error: "ProviderFailure") -> "ProviderFailure":
        """Return a copy of this error that also reports why the fallback failed"""
        augmented = type(self)(
            f"{self} (fallback {fallback_error.provider or 'provider'} also failed: {fallback_error})",
            provider=self.provider,
        )
        augmented.fallback_error = fallback_error
        return augmented


class ProviderUnreachable(ProviderFailure):
    pass


class ProviderTimeout(ProviderFailure):
    pass


class ProviderError(ProviderFailure):
    pass


class MissingCredential(ProviderFailure):
    pass


# base class for model output that cannot be turned into a quiz
class ResponseError(QuizGenError):
    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


# raised when no json object can be recovered from the model output
class MalformedResponse(ResponseError):
    pass


# raised when the json does not follow the quiz contract
class SchemaViolation(ResponseError):
    pass


# raised when every chunk of a document failed to produce questions
class NoUsableContent(QuizGenError):
    pass


class StoreError(QuizGenError):
    pass


class NotFound(StoreError):
    pass


class CorruptQuiz(StoreError):
    pass
