"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from resume_curator.clients.llm_client import LLMClient
from resume_curator.config import load_config
from resume_curator.content.store import ContentStore
from resume_curator.exceptions import ContentLibraryError
from resume_curator.logging.diagnostics_store import DiagnosticsStore
from resume_curator.models.qa import FormatReport
from resume_curator.models.resume import AssembledResume
from resume_curator.models.selection import ScoredCandidate
from resume_curator.models.signals import RequirementSignals
from resume_curator.pipeline.orchestrator import PipelineOrchestrator
from resume_curator.selection.selector import ContentSelector
from resume_curator.validation.format_checker import check_format

app = typer.Typer(
    name="resume-curator",
    help="Tailor a content library to a job description",
    no_args_is_help=True,
)
console = Console()

SEVERITY_STYLE = {"blocker": "red", "warning": "yellow", "suggestion": "dim"}


def setup_logging(verbose: bool = False) -> None:
    """Route all logging through rich. INFO by default, DEBUG with --verbose."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("anthropic").setLevel(logging.WARNING)


def _load_store(library: Path | None) -> ContentStore:
    path = library or load_config().content.resolved_library_path
    try:
        return ContentStore.from_file(path)
    except ContentLibraryError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _print_format_report(report: FormatReport) -> None:
    color = "green" if report.passed and report.score >= 8 else "yellow"
    console.print(Panel(f"[bold {color}]Format score: {report.score}/10[/bold {color}]"))
    for issue in report.issues:
        style = SEVERITY_STYLE.get(issue.severity, "")
        console.print(f"  [{style}]{issue.severity}[/{style}] {issue.message}")


@app.command()
def tailor(
    jd: Path = typer.Option(..., "--jd", help="Job description text file"),
    library: Path = typer.Option(None, "--library", "-l", help="Content library (YAML/JSON)"),
    output: Path = typer.Option(None, "--output", "-o", help="Output path for the resume JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Run the full pipeline and write the assembled resume as JSON."""
    setup_logging(verbose)
    if not jd.exists():
        console.print(f"[red]Job description not found: {jd}[/red]")
        raise typer.Exit(1)

    config = load_config()
    store = _load_store(library)
    jd_text = jd.read_text(encoding="utf-8")

    llm = LLMClient(timeout=config.llm.timeout, max_retries=config.llm.max_retries)
    orchestrator = PipelineOrchestrator(llm, store, config=config)
    sink = DiagnosticsStore(config.diagnostics.resolved_db_path) if config.diagnostics.enabled else None

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Tailoring resume...", total=None)

        def on_phase(phase: str, detail: str) -> None:
            progress.update(task, description=detail or phase)

        result = asyncio.run(
            orchestrator.run(jd_text, on_phase=on_phase, on_diagnostic=sink)
        )

    table = Table(title=f"Run {result.run_id}")
    table.add_column("Stage")
    table.add_column("Status")
    table.add_column("Attempts", justify="right")
    table.add_column("Tokens in/out", justify="right")
    table.add_column("Cost", justify="right")
    for r in result.stage_results:
        table.add_row(
            r.stage_name, r.status.value, str(r.attempts),
            f"{r.tokens_in}/{r.tokens_out}", f"${r.cost_estimate:.4f}",
        )
    console.print(table)
    for warning in result.warnings:
        console.print(f"[yellow]{warning}[/yellow]")

    if not result.success:
        console.print(f"[red]Pipeline failed: {result.first_fatal_error}[/red]")
        raise typer.Exit(1)

    _print_format_report(result.format_report)
    if result.coverage is not None:
        console.print(
            f"JD coverage: {result.coverage.score}/100 ({result.coverage.grade}), "
            f"{result.coverage.high_covered}/{result.coverage.high_total} HIGH phrases"
        )

    if output is None:
        company = result.assembled.target_role.company or "resume"
        output = Path(f"./output/{company}_{result.run_id[:8]}.json".replace(" ", "_"))
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result.assembled.model_dump_json(indent=2), encoding="utf-8")
    console.print(
        f"\n[green]Resume saved: {output}[/green] "
        f"(${result.total_cost:.4f}, {result.total_duration_ms / 1000:.1f}s)"
    )


@app.command()
def select(
    signals: Path = typer.Option(..., "--signals", help="YAML file with industries/functions/themes/keywords"),
    library: Path = typer.Option(None, "--library", "-l", help="Content library (YAML/JSON)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Score and select content for a set of requirement signals."""
    setup_logging(verbose)
    if not signals.exists():
        console.print(f"[red]Signals file not found: {signals}[/red]")
        raise typer.Exit(1)
    raw = yaml.safe_load(signals.read_text(encoding="utf-8")) or {}
    requirement_signals = RequirementSignals(
        **{k: [str(v).lower() for v in raw.get(k, [])] for k in ("industries", "functions", "themes", "keywords")}
    )

    store = _load_store(library)
    selection = ContentSelector(store, load_config().selection).select(requirement_signals)

    table = Table(title="Selected content")
    for column in ("Section", "Item", "Industry", "Function", "Theme", "Total"):
        table.add_column(column)

    def add(section: str, c: ScoredCandidate) -> None:
        table.add_row(
            section, c.item_id, str(c.industry_score), str(c.function_score),
            str(c.theme_score), str(c.total_score),
        )

    if selection.summary is not None:
        add("summary", selection.summary)
    for c in selection.highlights:
        add("highlight", c)
    for position, candidates in sorted(selection.bullets.items()):
        for c in candidates:
            add(f"P{position} bullet", c)
    for position, c in sorted(selection.overviews.items()):
        add(f"P{position} overview", c)
    console.print(table)

    if selection.blocked_ids:
        console.print(f"Blocked by conflicts: {', '.join(sorted(selection.blocked_ids))}")
    for category in selection.empty_categories:
        console.print(f"[yellow]No eligible content for {category}[/yellow]")


@app.command()
def check(
    resume: Path = typer.Argument(help="Assembled resume JSON file"),
) -> None:
    """Run the format checker on an assembled resume."""
    if not resume.exists():
        console.print(f"[red]Resume not found: {resume}[/red]")
        raise typer.Exit(1)
    assembled = AssembledResume.model_validate(json.loads(resume.read_text(encoding="utf-8")))
    report = check_format(assembled)
    _print_format_report(report)
    if not report.passed:
        raise typer.Exit(1)


@app.command()
def diagnostics(
    run_id: str = typer.Argument(None, help="Run id; omit to list recent runs"),
) -> None:
    """Show stored stage attempt records for a run."""
    config = load_config()
    store = DiagnosticsStore(config.diagnostics.resolved_db_path)
    if run_id is None:
        for rid in store.list_runs():
            console.print(rid)
        return

    records = store.get_records(run_id)
    if not records:
        console.print(f"[yellow]No records for run {run_id}[/yellow]")
        raise typer.Exit(1)
    table = Table(title=f"Run {run_id}")
    for column in ("Stage", "Attempt", "Status", "Tokens in/out", "Cost", "ms", "Issues"):
        table.add_column(column)
    for r in records:
        table.add_row(
            r.stage, str(r.attempt), r.status, f"{r.tokens_in}/{r.tokens_out}",
            f"${r.cost_estimate:.4f}", str(r.duration_ms), "; ".join(r.issues),
        )
    console.print(table)
    summary = store.get_run_summary(run_id)
    console.print(
        f"{summary['attempts']} attempts, {summary['tokens_in']}/{summary['tokens_out']} tokens, "
        f"${summary['cost_usd']:.4f}"
    )


if __name__ == "__main__":
    app()
