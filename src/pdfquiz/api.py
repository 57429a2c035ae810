# fastapi web api exposing the quiz pipeline to a local front end
from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
import tempfile
from functools import lru_cache
from typing import List, Optional

from .errors import CorruptQuiz, NotFound
from .models import Difficulty, HealthStatus, ImportResult
from .processing_service import QuizService

# configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# initialize fastapi application
app = FastAPI(
    title="PDF to Quiz API",
    description="Turn PDF documents into multiple-choice quizzes using a local or hosted LLM",
    version="1.0.0"
)

# add cors middleware so a local front end can call the api
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache()
def get_service() -> QuizService:
    return QuizService()


# endpoint to upload a pdf and generate a quiz from it
@app.post("/api/quizzes", response_model=ImportResult)
async def import_pdf(
    file: UploadFile = File(...),
    num_questions: Optional[int] = Form(None),
    difficulty: Optional[Difficulty] = Form(None),
    topic: str = Form(""),
    service: QuizService = Depends(get_service),
):
    """Upload a PDF and generate a quiz from it"""
    if not (file.filename or "").lower().endswith('.pdf'):
        raise HTTPException(status_code=400, detail="File must be a PDF")

    content = await file.read()
    logger.info(f"File uploaded: {file.filename} ({len(content)} bytes)")

    # the pipeline reads from disk, so park the upload in a temp file
    fd, tmp_path = tempfile.mkstemp(suffix=".pdf")
    try:
        with os.fdopen(fd, "wb") as buffer:
            buffer.write(content)
        return service.import_and_generate(
            tmp_path,
            num_questions=num_questions,
            difficulty=difficulty,
            topic=topic,
        )
    finally:
        os.remove(tmp_path)


@app.get("/api/quizzes", response_model=List[str])
async def list_quizzes(service: QuizService = Depends(get_service)):
    """List stored quiz files"""
    return service.list_quizzes()


@app.get("/api/quizzes/{name}")
async def get_quiz(name: str, service: QuizService = Depends(get_service)):
    """Return a stored quiz document"""
    try:
        return service.store.load(name).to_document()
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CorruptQuiz as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.delete("/api/quizzes/{name}")
async def delete_quiz(name: str, service: QuizService = Depends(get_service)):
    """Delete a stored quiz"""
    if not service.store.delete(name):
        raise HTTPException(status_code=404, detail=f"Quiz not found: {name}")
    return {"deleted": name}


@app.get("/api/health", response_model=HealthStatus)
async def health(service: QuizService = Depends(get_service)):
    """Report whether the LLM provider is reachable"""
    return service.check_provider_health()
