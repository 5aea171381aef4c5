"""
Command-line interface for RAG Doctor.

Commands:
- evaluate: Evaluate a config against the baseline on local files
- chunk: Preview how a file is chunked
- serve: Start the API server
"""

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ragdoctor.logging import configure_logging

console = Console()

CHUNK_SIZES = ["300", "500", "800", "1200"]
TOP_KS = ["3", "5", "8"]


@click.group()
@click.version_option()
def main() -> None:
    """RAG Doctor - find out why your RAG setup fails."""
    configure_logging()


def _print_metrics(response) -> None:
    from ragdoctor.evaluation.classifier import FAILURE_MODE_INFO

    table = Table(title="Metrics vs. baseline")
    table.add_column("Metric")
    table.add_column("Yours", justify="right")
    table.add_column("Baseline", justify="right")
    table.add_column("Change", justify="right")

    rows = [
        ("Quality", "quality", "{:.0f}%", "{:+.0f} pts"),
        ("Groundedness", "groundedness", "{:.0f}%", "{:+.0f} pts"),
        ("Avg cost", "avg_cost", "${:.6f}", "{:+.1f}%"),
        ("Avg latency", "avg_latency", "{:.2f}s", "{:+.2f}s"),
    ]
    comparison = response.comparison
    for label, key, value_fmt, diff_fmt in rows:
        item = comparison[key]
        colour = "green" if item.better else "red"
        table.add_row(
            label,
            value_fmt.format(item.value),
            value_fmt.format(getattr(response.baseline_metrics, key)),
            f"[{colour}]{diff_fmt.format(item.diff)}[/{colour}]",
        )
    console.print(table)

    failures = Table(title="Failure modes")
    failures.add_column("Mode")
    failures.add_column("Yours", justify="right")
    failures.add_column("Baseline", justify="right")
    for mode, (label, description, colour) in FAILURE_MODE_INFO.items():
        failures.add_row(
            f"[{colour}]{label}[/{colour}] - {description}",
            str(response.metrics.failure_counts[mode]),
            str(response.baseline_metrics.failure_counts[mode]),
        )
    console.print(failures)


def _print_results(response) -> None:
    from ragdoctor.evaluation.classifier import failure_mode_label

    for i, result in enumerate(response.results, 1):
        console.print(f"[bold]--- Q{i}: {result.question}[/bold]")
        console.print(
            f"[blue]Mode:[/blue] {failure_mode_label(result.failure_mode)}  "
            f"[blue]Confidence:[/blue] {result.confidence:.2f}  "
            f"[blue]Citations:[/blue] {result.citations or '-'}"
        )
        if result.error:
            console.print(f"[red]Error:[/red] {result.error}")
        preview = result.answer[:300] + "..." if len(result.answer) > 300 else result.answer
        console.print(f"[blue]Answer:[/blue] {preview}")
        console.print()


def _print_recommendations(response) -> None:
    if not response.recommendations:
        console.print("[green]No configuration changes suggested.[/green]")
        return

    console.print("[bold]Recommendations[/bold]")
    for rec in response.recommendations:
        console.print(f"[yellow]{rec.problem}[/yellow]")
        for fix in rec.fixes:
            console.print(f"  • {fix}")
        console.print(f"  [dim]Tradeoff: {rec.tradeoff}[/dim]")


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--question", "-q", "questions", multiple=True, help="Question to ask (repeatable)")
@click.option("--questions-file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="File with one question per line")
@click.option("--sample-questions", is_flag=True, help="Use the built-in sample questions")
@click.option("--chunk-size", type=click.Choice(CHUNK_SIZES), default="500", help="Characters per chunk")
@click.option("--chunk-overlap", type=click.FloatRange(0, 100), default=None, help="Overlap in % of chunk size")
@click.option("--search-type", type=click.Choice(["semantic", "keyword", "hybrid"]), default="semantic")
@click.option("--top-k", type=click.Choice(TOP_KS), default="5", help="Chunks passed to the model")
@click.option("--abstain-threshold", type=click.FloatRange(0, 1), default=0.5)
@click.option("--strict-citations/--lenient-citations", default=True)
@click.option("--api-key", envvar="RAGDOCTOR_API_KEY", default=None, help="Provider key (detected by prefix)")
@click.option("--provider", type=click.Choice(["groq", "openai", "anthropic", "gemini"]), default=None)
@click.option("--json", "as_json", is_flag=True, help="Print the full response as JSON")
def evaluate(
        files: tuple[Path, ...],
        questions: tuple[str, ...],
        questions_file: Path | None,
        sample_questions: bool,
        chunk_size: str,
        chunk_overlap: float | None,
        search_type: str,
        top_k: str,
        abstain_threshold: float,
        strict_citations: bool,
        api_key: str | None,
        provider: str | None,
        as_json: bool,
) -> None:
    """Evaluate a RAG config on FILES against the baseline."""
    from ragdoctor.evaluation.runner import EvaluationInputError, EvaluationTimeoutError, evaluate as run_evaluation
    from ragdoctor.evaluation.samples import SAMPLE_QUESTIONS
    from ragdoctor.evaluation.schemas import EvaluationRequest, RAGConfig
    from ragdoctor.generation.oracle import OracleError, create_oracle
    from ragdoctor.ingestion.documents import DocumentLoadError, load_documents

    question_list = list(questions)
    if questions_file:
        lines = questions_file.read_text(encoding="utf-8").splitlines()
        question_list.extend(line.strip() for line in lines if line.strip())
    if sample_questions:
        question_list.extend(SAMPLE_QUESTIONS)

    try:
        documents = load_documents(list(files))
        config = RAGConfig(
            chunk_size=int(chunk_size),
            chunk_overlap=chunk_overlap,
            search_type=search_type,
            top_k=int(top_k),
            abstain_threshold=abstain_threshold,
            strict_citations=strict_citations,
        )
        request = EvaluationRequest(documents=documents, questions=question_list, config=config)
        oracle = create_oracle(api_key=api_key, provider=provider)

        if not as_json:
            console.print(
                f"[yellow]Evaluating {len(question_list)} questions over {len(documents)} "
                f"document(s) ({config.search_type.value}, top-k {config.top_k})...[/yellow]",
                highlight=False,
            )
        response = run_evaluation(request, oracle=oracle)
    except (DocumentLoadError, EvaluationInputError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)
    except (OracleError, EvaluationTimeoutError) as e:
        console.print(f"[red]Evaluation failed: {e}[/red]")
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)

    if as_json:
        click.echo(json.dumps(response.to_dict(), indent=2))
        return

    _print_results(response)
    _print_metrics(response)
    _print_recommendations(response)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--chunk-size", type=int, default=500, help="Characters per chunk")
@click.option("--overlap", type=int, default=None, help="Overlap in characters")
@click.option("--limit", default=5, help="Number of chunks to show")
def chunk(file: Path, chunk_size: int, overlap: int | None, limit: int) -> None:
    """Show how FILE is split into chunks."""
    from ragdoctor.ingestion.chunk import DocumentChunker
    from ragdoctor.ingestion.documents import DocumentLoadError, load_document

    try:
        document = load_document(file)
        chunks = DocumentChunker(chunk_size=chunk_size, overlap=overlap).chunk_document(document)
    except (DocumentLoadError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)

    console.print(f"[green]✓ {document.name}: {len(document.text)} chars → {len(chunks)} chunks[/green]\n")

    for item in chunks[:limit]:
        console.print(f"[bold]--- {item.id} ({item.start}-{item.end}) ---[/bold]")
        preview = item.text[:200] + "..." if len(item.text) > 200 else item.text
        console.print(preview, highlight=False)
        console.print()


@main.command()
@click.option("--host", default=None, help="API host (defaults to API_HOST)")
@click.option("--port", default=None, type=int, help="API port (defaults to API_PORT)")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the API server."""
    import uvicorn

    from ragdoctor.config import settings

    uvicorn.run(
        "ragdoctor.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
    )


if __name__ == "__main__":
    main()
