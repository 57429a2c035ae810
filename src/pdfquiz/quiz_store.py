# stores generated quizzes as pretty-printed json files in one directory
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from .errors import CorruptQuiz, NotFound, SchemaViolation
from .models import Quiz, QuizSummary, StoreStatistics
from .response_parser import validate_quiz

logger = logging.getLogger(__name__)


class QuizStore:
    def __init__(self, directory: Union[str, Path] = "quiz/generated"):
        self.directory = Path(directory)

    # resolve a quiz identifier to a file inside the store directory
    def _path_for(self, name: str) -> Path:
        filename = Path(name).name
        if not filename:
            raise NotFound(f"Invalid quiz name: {name!r}")
        if not filename.lower().endswith(".json"):
            filename += ".json"
        return self.directory / filename

    @staticmethod
    def _timestamped_name() -> str:
        timestamp = datetime.now().isoformat().replace(":", "-").replace(".", "-")
        return f"quiz-generated-{timestamp}.json"

    def save(self, quiz: Quiz, name: Optional[str] = None) -> Path:
        """Write the quiz to disk and return its path"""
        path = self._path_for(name or self._timestamped_name())
        self.directory.mkdir(parents=True, exist_ok=True)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(quiz.to_document(), f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Error saving quiz to {path}: {str(e)}")
            raise

        logger.info(f"Quiz saved to {path}")
        return path

    def list_quizzes(self) -> List[str]:
        """Names of the stored quiz files, empty if the store does not exist yet"""
        if not self.directory.is_dir():
            return []
        return sorted(p.name for p in self.directory.iterdir()
                      if p.is_file() and p.suffix.lower() == ".json")

    def load(self, name: str) -> Quiz:
        """Load a stored quiz, accepting the legacy quizTitle key"""
        path = self._path_for(name)
        if not path.is_file():
            raise NotFound(f"Quiz not found: {path.name}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptQuiz(f"Quiz file {path.name} is not valid JSON: {e}") from e

        try:
            return validate_quiz(data)
        except SchemaViolation as e:
            raise CorruptQuiz(f"Quiz file {path.name} is invalid: {e}") from e

    def delete(self, name: str) -> bool:
        path = self._path_for(name)
        if not path.is_file():
            return False
        path.unlink()
        logger.info(f"Deleted quiz {path.name}")
        return True

    # list stored quizzes with metadata, newest first
    def describe(self) -> List[QuizSummary]:
        summaries = []
        for filename in self.list_quizzes():
            path = self.directory / filename
            stats = path.stat()
            summary = dict(
                filename=filename,
                path=str(path),
                size=stats.st_size,
                modified_at=datetime.fromtimestamp(stats.st_mtime),
            )
            try:
                quiz = self.load(filename)
                summaries.append(QuizSummary(
                    title=quiz.title, questions_count=len(quiz.questions), **summary
                ))
            except CorruptQuiz as e:
                summaries.append(QuizSummary(
                    title="Corrupt quiz", questions_count=0, error=str(e), **summary
                ))

        summaries.sort(key=lambda s: s.modified_at, reverse=True)
        return summaries

    def statistics(self) -> StoreStatistics:
        quizzes = self.describe()
        if not quizzes:
            return StoreStatistics()

        total_questions = sum(q.questions_count for q in quizzes)
        total_size = sum(q.size for q in quizzes)
        return StoreStatistics(
            total_quizzes=len(quizzes),
            total_questions=total_questions,
            average_questions=round(total_questions / len(quizzes)),
            total_size=total_size,
            average_size=round(total_size / len(quizzes)),
            newest_quiz=quizzes[0].modified_at,
            oldest_quiz=quizzes[-1].modified_at,
        )
