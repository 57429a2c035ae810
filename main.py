#!/usr/bin/env python3
"""
pdfquiz

A FastAPI application that turns PDF documents into multiple-choice quizzes
using a local Ollama model or a hosted chat-completion API.

To start the server:
    python main.py
"""

import sys
from pathlib import Path

# add src to python path so the package imports without installing
sys.path.insert(0, str(Path(__file__).parent / "src"))

# start the fastapi server when this file is run
if __name__ == "__main__":
    import uvicorn
    # run the api app on port 8000 with auto-reload for development
    uvicorn.run("pdfquiz.api:app", host="127.0.0.1", port=8000, reload=True)
