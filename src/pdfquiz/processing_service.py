import time
import logging
from pathlib import Path
from typing import List, Optional, Union

import requests

from .config import Settings, get_settings
from .errors import QuizGenError, StoreError
from .llm_service import LLMGateway
from .models import Difficulty, GenerationRequest, HealthStatus, ImportResult, Quiz
from .pdf_parser import PDFParser
from .quiz_generator import ProgressCallback, QuizGenerator
from .quiz_store import QuizStore

logger = logging.getLogger(__name__)


# quiz service orchestrates extraction, generation and storage for the hosts
class QuizService:
    def __init__(self, settings: Optional[Settings] = None,
                 session: Optional[requests.Session] = None,
                 gateway: Optional[LLMGateway] = None,
                 store: Optional[QuizStore] = None):
        self.settings = settings or get_settings()
        self.provider_config = self.settings.provider_config()
        self.pdf_parser = PDFParser(min_text_chars=self.settings.min_text_chars)
        self.gateway = gateway or LLMGateway(session=session)
        self.generator = QuizGenerator(
            self.gateway,
            self.provider_config,
            chars_per_token=self.settings.chars_per_token,
            default_context_length=self.settings.default_context_length,
            max_chunk_chars=self.settings.max_chunk_chars,
        )
        self.store = store or QuizStore(self.settings.quiz_dir)

    def import_and_generate(self, pdf_path: Union[str, Path],
                            num_questions: Optional[int] = None,
                            difficulty: Optional[Union[Difficulty, str]] = None,
                            topic: str = "",
                            name: Optional[str] = None,
                            on_progress: Optional[ProgressCallback] = None) -> ImportResult:
        """Main pipeline: pdf -> text -> quiz -> stored file"""
        start_time = time.time()

        try:
            logger.info(f"Starting quiz generation: {pdf_path}")
            logger.info("=" * 60)

            # Step 1: Extract text
            logger.info("Step 1: Extracting text...")
            text = self.pdf_parser.extract(pdf_path)
            metadata = self.pdf_parser.extract_metadata(pdf_path)
            pages = metadata.get('page_count', 0)
            logger.info(f"  ✓ {pages} pages, {len(text)} characters")

            # Step 2: Generate quiz
            logger.info("\nStep 2: Generating questions...")
            request = GenerationRequest(
                source_text=text,
                num_questions=(self.settings.default_questions if num_questions is None
                               else num_questions),
                difficulty=Difficulty(difficulty or self.settings.default_difficulty),
                topic=topic or "",
            )
            quiz = self.generator.generate_from_text(request, on_progress=on_progress)
            logger.info(f"  ✓ '{quiz.title}' with {len(quiz.questions)} questions")

            # Step 3: Save quiz
            logger.info("\nStep 3: Saving quiz...")
            path = self.store.save(quiz, name)

            processing_time = time.time() - start_time
            logger.info("=" * 60)
            logger.info(f"✓ SUCCESS! Completed in {processing_time:.2f} seconds")

            return ImportResult(
                success=True,
                quiz_file=path.name,
                title=quiz.title,
                num_questions=len(quiz.questions),
                pages=pages,
                text_length=len(text),
                processing_time=processing_time,
            )

        except (QuizGenError, ValueError, OSError) as e:
            processing_time = time.time() - start_time
            logger.error(f"✗ ERROR: {str(e)}")
            return ImportResult(success=False, error=str(e), processing_time=processing_time)

    def list_quizzes(self) -> List[str]:
        return self.store.list_quizzes()

    def load_quiz(self, name: str) -> Optional[Quiz]:
        """Load a stored quiz, None when it is missing or unreadable"""
        try:
            return self.store.load(name)
        except StoreError as e:
            logger.error(f"Error loading quiz {name}: {str(e)}")
            return None

    def check_provider_health(self) -> HealthStatus:
        return HealthStatus(
            reachable=self.gateway.ping(self.provider_config),
            provider=self.provider_config.provider.value,
            endpoint=self.provider_config.endpoint,
        )
