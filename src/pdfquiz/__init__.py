"""
pdfquiz

turns pdf documents into multiple-choice quizzes using a local or hosted llm
"""

__version__ = "1.0.0"
