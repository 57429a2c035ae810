# drives chunked quiz generation and merges the partial quizzes
import logging
import math
from pathlib import Path
from typing import Callable, List, Optional, Union

from .chunker import chunk_budget, split_text
from .errors import NoUsableContent, ProviderFailure, ResponseError
from .llm_service import LLMGateway
from .models import Chunk, Difficulty, GenerationRequest, ProviderConfig, Question, Quiz
from .pdf_parser import PDFParser
from .prompt_builder import build_quiz_prompt, infer_topic
from .response_parser import parse_quiz

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "Quiz generated from PDF"

# called with (chunk index, chunk count) before each chunk is sent
ProgressCallback = Callable[[int, int], None]


class QuizGenerator:
    def __init__(self, gateway: LLMGateway, provider_config: ProviderConfig,
                 chars_per_token: float = 3.5, default_context_length: int = 4096,
                 max_chunk_chars: Optional[int] = None):
        self.gateway = gateway
        self.provider_config = provider_config
        self.chars_per_token = chars_per_token
        self.default_context_length = default_context_length
        self.max_chunk_chars = max_chunk_chars

    # character budget from the model context, capped by the configured ceiling
    def chunk_size(self) -> int:
        context_length = self.gateway.context_length(self.provider_config)
        if context_length is None:
            logger.info(f"  Context length unknown, assuming {self.default_context_length} tokens")
            context_length = self.default_context_length
        budget = chunk_budget(context_length, self.chars_per_token)
        if self.max_chunk_chars:
            budget = min(budget, self.max_chunk_chars)
        return budget

    def generate_from_text(self, request: GenerationRequest,
                           on_progress: Optional[ProgressCallback] = None) -> Quiz:
        """Generate a quiz from already extracted text"""
        topic = request.topic.strip() or infer_topic(request.source_text)
        chunks = split_text(request.source_text, self.chunk_size())
        logger.info(f"  Topic: {topic}, difficulty: {request.difficulty.value}, chunks: {len(chunks)}")

        if len(chunks) == 1:
            # short text, generated in one call and returned as parsed
            if on_progress:
                on_progress(0, 1)
            chunk = Chunk(index=0, text=chunks[0], num_questions=request.num_questions)
            try:
                return self._generate_chunk(chunk, request.difficulty, topic)
            except (ProviderFailure, ResponseError) as e:
                raise NoUsableContent(f"Could not generate questions from the text: {e}") from e

        return self._generate_from_multiple_chunks(chunks, request, topic, on_progress)

    def generate_from_pdf(self, pdf_path: Union[str, Path], pdf_parser: PDFParser,
                          num_questions: int = 10,
                          difficulty: Difficulty = Difficulty.MEDIUM,
                          topic: str = "",
                          on_progress: Optional[ProgressCallback] = None) -> Quiz:
        """Extract the text of a PDF and generate a quiz from it"""
        text = pdf_parser.extract(pdf_path)
        request = GenerationRequest(source_text=text, num_questions=num_questions,
                                    difficulty=difficulty, topic=topic)
        return self.generate_from_text(request, on_progress=on_progress)

    def _generate_chunk(self, chunk: Chunk, difficulty: Difficulty, topic: str) -> Quiz:
        prompt = build_quiz_prompt(chunk.text, chunk.num_questions, difficulty, topic)
        raw = self.gateway.invoke(prompt, self.provider_config)
        try:
            return parse_quiz(raw)
        except ResponseError:
            logger.debug(f"Raw model output for chunk {chunk.index + 1}:\n{raw}")
            raise

    def _generate_from_multiple_chunks(self, chunks: List[str], request: GenerationRequest,
                                       topic: str, on_progress: Optional[ProgressCallback]) -> Quiz:
        total = request.num_questions
        per_chunk = math.ceil(total / len(chunks))
        questions: List[Question] = []
        title = None
        last_error = None

        for index, text in enumerate(chunks):
            if len(questions) >= total:
                break
            if on_progress:
                on_progress(index, len(chunks))

            chunk = Chunk(index=index, text=text,
                          num_questions=min(per_chunk, total - len(questions)))
            try:
                partial = self._generate_chunk(chunk, request.difficulty, topic)
            except (ProviderFailure, ResponseError) as e:
                # a bad chunk is skipped, the others may still produce questions
                logger.warning(f"  ! Skipping chunk {index + 1}/{len(chunks)}: {e}")
                last_error = e
                continue

            if title is None:
                title = partial.title

            # renumber onto the running sequence so the merged list stays 1..K
            offset = len(questions)
            for position, question in enumerate(partial.questions, start=1):
                questions.append(question.model_copy(update={"number": offset + position}))
            logger.info(f"  ✓ Chunk {index + 1}/{len(chunks)}: {len(partial.questions)} questions")

        if not questions:
            raise NoUsableContent(
                f"Could not generate questions from any of the {len(chunks)} chunks"
                + (f" (last error: {last_error})" if last_error else "")
            )

        return Quiz(title=title or FALLBACK_TITLE, questions=questions[:total])
