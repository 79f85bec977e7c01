"""CLI interface for npm-solution-scout."""

import json
import logging
import os

import typer
from rich.console import Console
from rich.table import Table

from solution_scout.consts import ENV_PACKAGE_MANAGER, EVALUATION_CONCURRENCY, SEARCH_DEFAULT_LIMIT
from solution_scout.evaluators.ranking import rank_evaluations, recommend
from solution_scout.installer.driver import resolve_package_manager
from solution_scout.models.model_eval import LicenseCompatibility
from solution_scout.pipeline import run_evaluation, run_install, run_search

app = typer.Typer(
    name="scout",
    help="npm-solution-scout - Find, compare and install npm packages",
)

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _get_score_color(score: float) -> str:
    """Get color for composite score display."""
    if score >= 7:
        return "green"
    elif score >= 5:
        return "yellow"
    else:
        return "red"


def _get_license_color(compatibility: LicenseCompatibility | None) -> str:
    if compatibility == LicenseCompatibility.COMPATIBLE:
        return "green"
    elif compatibility == LicenseCompatibility.PROBLEMATIC:
        return "red"
    else:
        return "yellow"


def _truncate(text: str, max_len: int = 60) -> str:
    """Truncate text with ellipsis."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(SEARCH_DEFAULT_LIMIT, "--limit", "-l", help="Number of results"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress logs"),
) -> None:
    """Search the npm registry for candidate packages."""
    _configure_logging(verbose)

    response = run_search(query, limit)

    if not response.success:
        console.print(f"[red]Error:[/red] {response.error}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(response.model_dump(mode="json", exclude_none=True), indent=2))
        return

    if not response.results:
        console.print(f"[yellow]No results found for '{query}'[/yellow]")
        return

    table = Table(title=f"Search Results for '{query}' ({response.count} matches)")
    table.add_column("Name", style="cyan")
    table.add_column("Version", style="blue")
    table.add_column("Published", style="dim")
    table.add_column("Keywords", style="dim")
    table.add_column("Description", style="dim")

    for hit in response.results:
        table.add_row(
            hit.name,
            hit.version or "",
            (hit.date or "")[:10],
            ", ".join(hit.keywords[:3]),
            _truncate(hit.description or "", 50),
        )

    console.print(table)


@app.command()
def evaluate(
    packages: list[str] = typer.Argument(..., help="Candidate package names"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
    concurrency: int = typer.Option(
        EVALUATION_CONCURRENCY, "--concurrency", "-c", help="Packages fetched in parallel"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress logs"),
) -> None:
    """Evaluate and compare candidate packages."""
    _configure_logging(verbose)

    try:
        results = run_evaluation(list(packages), concurrency=concurrency)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps([result.to_output() for result in results], indent=2))
        return

    ranked = rank_evaluations(results)

    table = Table(title=f"Evaluation of {len(results)} Candidates")
    table.add_column("Rank", justify="right", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Maint", justify="right", style="dim")
    table.add_column("Pop", justify="right", style="dim")
    table.add_column("Qual", justify="right", style="dim")
    table.add_column("Sec", justify="right", style="dim")
    table.add_column("Downloads/wk", justify="right", style="magenta")
    table.add_column("License")
    table.add_column("Notes", style="dim")

    for candidate in ranked:
        result = candidate.evaluation
        scores = result.scores
        score_color = _get_score_color(scores.composite)
        license_color = _get_license_color(result.license_compatibility)
        notes = _truncate(result.error, 40) if result.failed else ", ".join(candidate.reasons)

        table.add_row(
            str(candidate.rank),
            result.name,
            f"[{score_color}]{scores.composite:.1f}[/{score_color}]",
            str(scores.maintenance),
            str(scores.popularity),
            str(scores.quality),
            str(scores.security),
            f"{result.downloads:,}" if result.downloads is not None else "-",
            f"[{license_color}]{result.license or '-'}[/{license_color}]",
            notes,
        )

    console.print(table)

    best = recommend(ranked)
    if best is None:
        console.print("\n[yellow]No candidate meets the recommendation criteria.[/yellow]")
    else:
        console.print(
            f"\n[bold green]Recommended:[/bold green] {best.evaluation.name} "
            f"(score {best.evaluation.scores.composite:.1f})"
        )


@app.command()
def install(
    package: str = typer.Argument(..., help="Package to install (optionally name@range)"),
    workspace: str = typer.Option(None, "--workspace", "-w", help="Workspace to install into"),
    manager: str = typer.Option(
        None, "--manager", "-m", help="Package manager (npm, pnpm). Default: $SCOUT_PACKAGE_MANAGER or npm"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress logs"),
) -> None:
    """Install a package, then audit, test and lint the project."""
    _configure_logging(verbose)

    try:
        package_manager = resolve_package_manager(manager)
    except ValueError:
        invalid = manager or os.getenv(ENV_PACKAGE_MANAGER, "").strip()
        console.print(f"[red]Error:[/red] Invalid manager '{invalid}'. Must be: npm, pnpm")
        raise typer.Exit(1)

    target = f" in workspace '{workspace}'" if workspace else ""
    if not yes and not typer.confirm(
        f"Install {package}{target} with {package_manager.value}?"
    ):
        console.print("[yellow]Installation cancelled.[/yellow]")
        raise typer.Exit()

    report = run_install(package, workspace=workspace, manager=package_manager)
    typer.echo(json.dumps(report.to_output(), indent=2))

    if not report.succeeded:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
