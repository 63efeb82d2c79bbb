"""CLI commands using Typer."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from form_automation.config import get_settings
from form_automation.integrations.langfuse.tracing import flush_langfuse, init_langfuse
from form_automation.models import (
    AuditRecord,
    AutomationConfig,
    ConstituentData,
    FormAnalysis,
    SubmissionResult,
)

app = typer.Typer(
    name="form-automation",
    help="Vision-driven contact form automation CLI",
    add_completion=False,
)

console = Console()

STATUS_STYLES = {
    "success": "green",
    "captcha_required": "yellow",
    "validation_error": "red",
    "network_error": "red",
    "unknown_error": "red",
}


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
):
    """Load environment files and configure logging."""
    load_dotenv(".env.local")
    load_dotenv()
    get_settings.cache_clear()
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def read_constituent(path: Path) -> ConstituentData:
    """Read constituent data from a JSON file."""
    if not path.exists():
        console.print(f"[red]Error:[/red] Data file not found: {path}")
        raise typer.Exit(1)
    try:
        return ConstituentData.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid constituent data in {path}:\n{e}")
        raise typer.Exit(1)


def print_result(result: SubmissionResult) -> None:
    style = STATUS_STYLES.get(result.status.value, "white")
    console.print(
        Panel(
            f"[bold {style}]{result.status.value}[/bold {style}]\n"
            f"{result.message}\n"
            f"[dim]Pages filled:[/dim] {result.pages_filled}\n"
            f"[dim]Time:[/dim] {result.time_taken_ms} ms",
            title="Submission Result",
        )
    )

    if result.confirmation_number:
        console.print(f"  Confirmation number: [bold]{result.confirmation_number}[/bold]")

    if result.validation_errors:
        console.print("\n[bold]Validation errors:[/bold]")
        for issue in result.validation_errors:
            console.print(f"  [red]-[/red] {issue.field}: {issue.error}")

    if result.fill_errors:
        console.print("\n[bold]Fill errors:[/bold]")
        for error in result.fill_errors:
            console.print(f"  [yellow]-[/yellow] {error}")

    if result.requires_fallback:
        console.print("\n[yellow]Automation did not succeed; use a non-automated channel.[/yellow]")


def print_analysis(analysis: FormAnalysis) -> None:
    table = Table(title=f"Form fields (confidence {analysis.confidence:.2f})")
    table.add_column("Selector")
    table.add_column("Type")
    table.add_column("Label")
    table.add_column("Data type")
    table.add_column("Required")

    for field in analysis.fields:
        table.add_row(
            field.selector,
            field.type.value,
            field.label,
            field.data_type.value,
            "yes" if field.required else "",
        )

    console.print(table)
    console.print(f"  Submit button: {analysis.submit_button_selector}")
    console.print(f"  CAPTCHA: {analysis.has_captcha} ({analysis.captcha_type.value if analysis.captcha_type else '-'})")
    console.print(f"  Multi-page: {analysis.is_multi_page}")
    if analysis.notes:
        console.print(f"  Notes: {analysis.notes}")


@app.command()
def submit(
    target: Annotated[str, typer.Argument(help="Contact form URL or bioguide ID")],
    data_path: Annotated[Path, typer.Option("--data", "-d", help="Constituent data JSON file")],
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Fill the form but do not submit")] = False,
    debug_dir: Annotated[
        Path | None, typer.Option("--debug-dir", help="Directory for debug screenshots")
    ] = None,
    headless: Annotated[bool, typer.Option("--headless/--no-headless", help="Run browser headless")] = True,
):
    """
    Fill and submit a representative's contact form.

    Example:
        form-automation submit S000033 --data ./constituent.json --dry-run
    """
    from form_automation.orchestrator import submit_to_representative

    data = read_constituent(data_path)
    config = AutomationConfig.from_settings()
    config = config.model_copy(
        update={
            "browser": config.browser.model_copy(update={"headless": headless}),
            "submit": config.submit and not dry_run,
            "debug_dir": debug_dir or config.debug_dir,
        }
    )

    console.print(
        Panel(
            f"[bold]Target:[/bold] {target}\n"
            f"[dim]Constituent:[/dim] {data.full_name} <{data.email}>\n"
            f"[dim]Mode:[/dim] {'submit' if config.submit else 'dry run'}",
            title="Form Automation",
        )
    )

    init_langfuse()
    try:
        result = asyncio.run(submit_to_representative(target, data, config))
    finally:
        flush_langfuse()

    print_result(result)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def analyze(
    url: Annotated[str, typer.Argument(help="Contact form URL")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write analysis JSON")] = None,
    headless: Annotated[bool, typer.Option("--headless/--no-headless", help="Run browser headless")] = True,
):
    """
    Analyze a contact form without filling or submitting it.

    Example:
        form-automation analyze "https://example.house.gov/contact"
    """
    from form_automation.exceptions import FormAutomationError
    from form_automation.orchestrator import analyze_form_only

    config = AutomationConfig.from_settings()
    config = config.model_copy(update={"browser": config.browser.model_copy(update={"headless": headless})})

    console.print("[dim]Analyzing form with Claude Vision...[/dim]")
    init_langfuse()
    try:
        analysis = asyncio.run(analyze_form_only(url, config))
    except (FormAutomationError, ValueError) as e:
        console.print(f"\n[red]Analysis failed:[/red] {e}")
        raise typer.Exit(1)
    finally:
        flush_langfuse()

    print_analysis(analysis)

    if output:
        output.write_text(json.dumps(analysis.model_dump(mode="json"), indent=2), encoding="utf-8")
        console.print(f"\n[green]Analysis saved to:[/green] {output}")


@app.command()
def audit(
    limit: Annotated[int | None, typer.Option("--limit", "-n", help="Only check the first N forms")] = None,
    resume: Annotated[bool, typer.Option("--resume", help="Resume from the last checkpoint")] = False,
    headless: Annotated[bool, typer.Option("--headless/--no-headless", help="Run browser headless")] = True,
):
    """
    Check every known contact form for CAPTCHAs.

    Example:
        form-automation audit --limit 10 --resume
    """
    from form_automation.audit import run_audit

    settings = get_settings()
    console.print(Panel("[bold]Contact Form CAPTCHA Audit[/bold]", title="Form Automation"))

    def report(processed: int, pending: int, record: AuditRecord) -> None:
        if record.error:
            status = f"[red]Failed:[/red] {record.error}"
        elif record.has_captcha:
            status = f"[yellow]CAPTCHA[/yellow] ({record.captcha_type.value if record.captcha_type else 'unknown'})"
        else:
            status = "[green]No CAPTCHA[/green]"
        console.print(f"[{processed}/{pending}] {record.name} ({record.bioguide_id}): {status}")

    init_langfuse()
    try:
        summary = asyncio.run(run_audit(limit=limit, resume=resume, headless=headless, on_progress=report))
    finally:
        flush_langfuse()

    def share(count: int) -> str:
        return f"{count / summary.total * 100:.1f}%" if summary.total else "0.0%"

    table = Table(title="Audit Summary")
    table.add_column("Outcome")
    table.add_column("Forms", justify="right")
    table.add_column("Share", justify="right")
    table.add_row("CAPTCHA-free", str(summary.without_captcha), share(summary.without_captcha))
    table.add_row("With CAPTCHA", str(summary.with_captcha), share(summary.with_captcha))
    table.add_row("Failed to load", str(summary.failed_to_load), share(summary.failed_to_load))
    console.print(table)

    with_captcha = [r for r in summary.results if r.has_captcha and r.loaded_successfully]
    if with_captcha:
        console.print("\n[bold]Representatives with CAPTCHAs:[/bold]")
        for record in with_captcha[:20]:
            console.print(f"  - {record.name} ({record.captcha_type.value if record.captcha_type else 'unknown'})")
        if len(with_captcha) > 20:
            console.print(f"  ... and {len(with_captcha) - 20} more")

    console.print(f"\n[green]Results saved to:[/green] {settings.audit_results_file}")
    console.print(f"[green]Screenshots saved to:[/green] {settings.audit_screenshot_dir}")


@app.command()
def info():
    """Show configuration information."""
    settings = get_settings()

    console.print(Panel("[bold]Configuration[/bold]", title="Form Automation"))
    console.print(
        f"  Langfuse: {'[green]Configured[/green]' if settings.langfuse_secret_key else '[yellow]Not configured[/yellow]'}"
    )

    if settings.bedrock_enabled:
        console.print(f"  [green]AWS Bedrock: Enabled[/green] ({settings.bedrock_region})")
        console.print(f"  Model: {settings.bedrock_model_id}")
    elif settings.anthropic_api_key:
        console.print("  [green]Claude API: Configured[/green]")
        console.print(f"  Model: {settings.anthropic_model}")
    else:
        console.print("  [yellow]Claude: Not configured (enable Bedrock or set API key)[/yellow]")

    console.print(f"  Headless: {settings.playwright_headless}")
    console.print(f"  Submit forms: {settings.submit_forms}")
    console.print(f"  Legislators file: {settings.legislators_file}")


if __name__ == "__main__":
    app()
