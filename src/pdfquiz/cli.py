import typer
import os
from typing import Optional
import logging
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.panel import Panel

from .models import Difficulty
from .processing_service import QuizService

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize Typer app
app = typer.Typer(
    name="pdfquiz",
    help="Turn PDF documents into multiple-choice quizzes using a local or hosted LLM",
    add_completion=False
)

# Initialize console for rich output
console = Console()

@app.command()
def generate(
    pdf_path: str = typer.Argument(..., help="Path to the PDF file to turn into a quiz"),
    questions: Optional[int] = typer.Option(None, "--questions", "-n", min=1, help="Number of questions to generate"),
    difficulty: Optional[Difficulty] = typer.Option(None, "--difficulty", "-d", help="Question difficulty"),
    topic: str = typer.Option("", "--topic", "-t", help="Topic hint, inferred from the text when empty"),
    name: Optional[str] = typer.Option(None, "--name", help="File name for the saved quiz"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
):
    """Generate a quiz from a PDF file"""

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate inputs
    if not os.path.exists(pdf_path):
        console.print(f"[red]Error: PDF file not found: {pdf_path}[/red]")
        raise typer.Exit(1)

    service = QuizService()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console
    ) as progress:
        task = progress.add_task("Generating quiz...", total=None)

        def on_progress(index: int, count: int):
            progress.update(task, description=f"Generating questions (chunk {index + 1}/{count})...")

        result = service.import_and_generate(
            pdf_path,
            num_questions=questions,
            difficulty=difficulty,
            topic=topic,
            name=name,
            on_progress=on_progress,
        )

    if not result.success:
        console.print(f"[red]Error generating quiz: {result.error}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Quiz generated in {result.processing_time:.2f} seconds[/green]")
    console.print(f"[green]✓ Saved to: {service.store.directory / result.quiz_file}[/green]")
    console.print(f"[dim]{result.title} - {result.num_questions} questions from {result.pages} pages[/dim]")

@app.command("list")
def list_quizzes():
    """List stored quizzes"""

    service = QuizService()
    summaries = service.store.describe()

    if not summaries:
        console.print("[yellow]No quizzes available.[/yellow]")
        return

    table = Table(title="Stored Quizzes")
    table.add_column("File", style="cyan")
    table.add_column("Title")
    table.add_column("Questions", justify="right", style="magenta")
    table.add_column("Modified", style="dim")

    for summary in summaries:
        title = f"[red]{summary.title}[/red]" if summary.error else summary.title
        table.add_row(summary.filename, title, str(summary.questions_count),
                      summary.modified_at.strftime("%Y-%m-%d %H:%M"))

    console.print(table)

@app.command()
def show(
    name: str = typer.Argument(..., help="File name of the stored quiz"),
    answers: bool = typer.Option(False, "--answers", "-a", help="Mark the correct answers")
):
    """Show the questions of a stored quiz"""

    service = QuizService()
    quiz = service.load_quiz(name)
    if quiz is None:
        console.print(f"[red]Error: quiz not found or unreadable: {name}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold blue]{quiz.title}[/bold blue]\n")
    for question in quiz.questions:
        lines = []
        for key, text in question.options.items():
            if answers and key == question.correct_answer:
                lines.append(f"[green]{key}: {text} ✓[/green]")
            else:
                lines.append(f"{key}: {text}")
        console.print(Panel("\n".join(lines), title=f"{question.number}. {question.prompt}", title_align="left"))

@app.command()
def stats():
    """Show statistics for the quiz store"""

    service = QuizService()
    statistics = service.store.statistics()

    table = Table(title="Quiz Store Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("Total Quizzes", str(statistics.total_quizzes))
    table.add_row("Total Questions", str(statistics.total_questions))
    table.add_row("Avg Questions per Quiz", str(statistics.average_questions))
    table.add_row("Total Size (bytes)", str(statistics.total_size))
    table.add_row("Newest Quiz", str(statistics.newest_quiz or "-"))
    table.add_row("Oldest Quiz", str(statistics.oldest_quiz or "-"))

    console.print(table)

@app.command()
def health():
    """Check whether the LLM provider is reachable"""

    service = QuizService()
    status = service.check_provider_health()

    if status.reachable:
        console.print(f"[green]✓ {status.provider} reachable at {status.endpoint}[/green]")
    else:
        console.print(f"[red]✗ {status.provider} not reachable at {status.endpoint}[/red]")
        raise typer.Exit(1)

@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind the server to"),
    port: int = typer.Option(8000, "--port", help="Port to bind the server to")
):
    """Start the FastAPI server"""

    console.print(f"[green]Starting server on {host}:{port}[/green]")

    import uvicorn
    uvicorn.run("pdfquiz.api:app", host=host, port=port)

if __name__ == "__main__":
    app()
