"""Command-line interface for skillmine."""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from skillmine.diff import SupportedAlgorithm, compute_diff
from skillmine.errors import SkillmineError
from skillmine.extraction import ContributionService, GitRepository, TemporaryClone
from skillmine.log_config import configure_logging
from skillmine.models import Project, Settings

app = typer.Typer(
    name="skillmine",
    help="Mine Git history for per-commit contributions and the lines they touched",
    add_completion=False,
)
console = Console()


def _parse_instant(value: str, option: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise typer.BadParameter(f"Not an ISO 8601 timestamp: {value}", param_hint=option) from e


def _repository_factory(repo: str):
    path = Path(repo)
    if path.exists():
        return lambda: GitRepository(path)
    return TemporaryClone(repo)


@app.command()
def contributions(
    repo: str = typer.Argument(..., help="Path to a Git repository or a URL to clone"),
    since: str = typer.Option(..., "--since", "-s", help="Window start (exclusive), ISO 8601"),
    until: str = typer.Option(..., "--until", "-u", help="Window end (inclusive), ISO 8601"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project name (defaults to the repository name)"),
    algorithm: Optional[SupportedAlgorithm] = typer.Option(None, "--algorithm", "-a", help="Diff algorithm for --touched"),
    touched: bool = typer.Option(False, "--touched", "-t", help="Compute touched lines per file"),
    skip_failed_branches: bool = typer.Option(False, "--skip-failed-branches", help="Continue with other branches after a failure"),
    first_parent: bool = typer.Option(False, "--first-parent", help="Follow only first parents when walking history"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output JSON file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Extract contributions committed within a time window."""
    settings = Settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_json)

    start = _parse_instant(since, "--since")
    end = _parse_instant(until, "--until")

    config = settings.extraction_config()
    config.skip_failed_branches = config.skip_failed_branches or skip_failed_branches
    config.first_parent = config.first_parent or first_parent
    if algorithm is not None:
        config.diff_algorithm = algorithm

    project_name = project or Path(repo.rstrip("/")).stem

    try:
        service = ContributionService(_repository_factory(repo), Project(value=project_name), config)

        console.print(f"[bold green]Extracting contributions from:[/bold green] {repo}")
        console.print(f"[bold blue]Window:[/bold blue] {start.isoformat()} .. {end.isoformat()}\n")

        records = []
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Reading contributions...", total=None)

            with service.retrieve_contributions(start, end) as stream:
                for contribution in stream:
                    record = contribution.model_dump(mode="json")
                    if touched:
                        for item, item_record in zip(contribution.items, record["items"]):
                            item_record["touched_lines"] = sorted(item.touched_lines(config.diff_algorithm))
                    records.append(record)

                    if verbose:
                        console.print(
                            f"  [cyan]{contribution.id.value[:7]}[/cyan] "
                            f"{len(contribution.items)} files "
                            f"[dim]by {contribution.contributor.name}[/dim]"
                        )

            progress.update(task, completed=True)

        console.print(f"\n[bold green]✓[/bold green] Extracted {len(records)} contributions")

        if output:
            output.parent.mkdir(parents=True, exist_ok=True)
            with open(output, "w") as f:
                json.dump(records, f, indent=2, default=str)
            console.print(f"[bold green]✓[/bold green] Saved to {output}")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Commit", style="cyan", width=10)
        table.add_column("Contributor", style="green")
        table.add_column("Date", style="blue")
        table.add_column("Message", style="white")
        table.add_column("Files", justify="right", style="yellow")

        for record in records:
            message_lines = record["message"].strip().split("\n")
            table.add_row(
                record["id"]["value"][:7],
                record["contributor"]["name"][:20],
                record["timestamp"],
                message_lines[0][:60],
                str(len(record["items"])),
            )

        console.print(table)

    except SkillmineError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def touched(
    previous_file: Path = typer.Argument(..., help="Previous version of the file"),
    current_file: Path = typer.Argument(..., help="Current version of the file"),
    algorithm: SupportedAlgorithm = typer.Option(SupportedAlgorithm.HISTOGRAM, "--algorithm", "-a", help="Diff algorithm"),
) -> None:
    """Show the lines of CURRENT_FILE inserted or replaced relative to PREVIOUS_FILE."""
    try:
        diff = compute_diff(previous_file.read_bytes(), current_file.read_bytes(), algorithm)
        lines = sorted(diff.touched_lines())
    except (OSError, SkillmineError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold green]Touched spans ({algorithm.value}):[/bold green] {len(lines)}")
    for line in lines:
        console.print(line, markup=False, highlight=False)


if __name__ == "__main__":
    app()
