"""
Command-line interface for i18ntrans-llms.

Provides commands for:
- Translating a locale file into several languages
- Auditing which keys no locale has translated yet
- Managing the API key

Usage:
    i18ntrans translate -i locales/pt-BR.json -f pt-BR -t es-AR,en-US -o locales
    i18ntrans translate -i locales/pt-BR.json -f pt-BR -t es-AR -o locales --missing-only
    i18ntrans missing locales/pt-BR.json locales
    i18ntrans keys list
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from i18ntrans_llms import __version__
from i18ntrans_llms.config import APP_NAME, DEFAULT_MODEL
from i18ntrans_llms.diff import find_missing_keys_in_dir
from i18ntrans_llms.errors import I18nTransError
from i18ntrans_llms.pipeline import PipelineConfig, PipelineResult, TranslationPipeline
from i18ntrans_llms.translate.base import create_translator

app = typer.Typer(
    name="i18ntrans",
    help="Translate i18n JSON files using the OpenAI API",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # HTTP request lines from the SDK are noise even in verbose mode
    logging.getLogger("httpx").setLevel(logging.WARNING)


def parse_languages(value: str) -> list[str]:
    """Split a comma-separated language list, dropping blanks."""
    return [lang.strip() for lang in value.split(",") if lang.strip()]


def fail(error: Exception) -> None:
    err_console.print(f"\n[red]✗ Error:[/] {escape(str(error))}", highlight=False)
    raise typer.Exit(1)


def version_callback(value: bool):
    if value:
        console.print(f"{APP_NAME} v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """i18ntrans-llms: batch translation of i18n JSON files."""
    pass


@app.command()
def translate(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to source i18n JSON file",
    ),
    source_lang: str = typer.Option(
        ..., "--from", "-f",
        help="Source language code (e.g., pt-BR)",
    ),
    target_langs: str = typer.Option(
        ..., "--to", "-t",
        help="Comma-separated target language codes (e.g., es-AR,en-US)",
    ),
    output_dir: Path = typer.Option(
        ..., "--output", "-o",
        help="Output directory for translated files",
    ),
    model: str = typer.Option(
        DEFAULT_MODEL, "--model", "-m",
        help="OpenAI model to use",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show detailed progress",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run",
        help="Parse and validate without calling the API",
    ),
    missing_only: bool = typer.Option(
        False, "--missing-only",
        help="Only translate keys missing from existing target files",
    ),
):
    """Translate an i18n JSON file to one or more languages."""
    setup_logging(verbose)
    console.print(f"\n[bold]{APP_NAME}[/]\n")

    languages = parse_languages(target_langs)
    if not languages:
        fail(typer.BadParameter("at least one target language is required"))

    config = PipelineConfig(
        input_path=input_file,
        source_lang=source_lang,
        target_langs=languages,
        output_dir=output_dir,
        model=model,
        dry_run=dry_run,
        missing_only=missing_only,
    )

    try:
        # Credentials are checked before any file is read
        translator = None if dry_run else create_translator("openai", model=config.model)
        if dry_run:
            result = TranslationPipeline(config).run()
        else:
            result = _run_with_progress(config, translator, verbose)
    except I18nTransError as e:
        fail(e)

    if dry_run:
        _print_dry_run(result)
    else:
        _print_summary(result)


def _run_with_progress(config: PipelineConfig, translator, verbose: bool) -> PipelineResult:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Translating...", total=100)

        def update_progress(msg: str, pct: float):
            progress.update(task, description=escape(msg), completed=int(pct * 100))
            if msg.startswith("Translating to"):
                progress.console.print(f"\n{escape(msg)}", highlight=False)
            elif msg != "Complete!" or verbose:
                progress.console.print(f"[green]✓[/] {escape(msg)}", highlight=False)

        pipeline = TranslationPipeline(config, translator, update_progress)
        return pipeline.run()


def _print_dry_run(result: PipelineResult) -> None:
    config = result.config
    console.print(f"[green]✓[/] Loaded {escape(str(config.input_path))} ({result.string_count} strings)", highlight=False)
    console.print(f"[green]✓[/] Grouped into {result.section_count} sections")
    console.print("\n[yellow]Dry run mode - no API calls will be made[/]")

    table = Table(title="Sections")
    table.add_column("Section", style="cyan")
    table.add_column("Strings", style="green", justify="right")
    for section, count in result.sections.items():
        table.add_row(section, str(count))
    console.print(table)

    if config.missing_only:
        for lang in result.languages:
            console.print(f"  {lang.language}: {lang.missing} missing keys", highlight=False)

    console.print(f"\nWould translate to: {', '.join(config.target_langs)}", highlight=False)
    console.print(f"Would create files in: {escape(str(config.output_dir))}/", highlight=False)


def _print_summary(result: PipelineResult) -> None:
    table = Table(title="Translation Summary")
    table.add_column("Language", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Sections", justify="right")
    table.add_column("Keys", justify="right")
    table.add_column("Output", style="dim")
    for lang in result.languages:
        table.add_row(
            lang.language,
            "already complete" if lang.status == "complete" else lang.status,
            str(len(lang.sections_translated)),
            str(lang.keys_translated),
            str(lang.output_path),
        )
    console.print(table)
    console.print(
        f"\n[green]Done![/] Translated to {len(result.languages)} language(s).",
        highlight=False,
    )


@app.command()
def missing(
    main_file: Path = typer.Argument(..., help="Reference locale file"),
    translations_dir: Path = typer.Argument(..., help="Directory of locale files to compare"),
    as_json: bool = typer.Option(False, "--json", help="Print the keys as a JSON array"),
):
    """List keys of MAIN_FILE that no other locale in TRANSLATIONS_DIR has."""
    setup_logging(False)
    try:
        keys = find_missing_keys_in_dir(main_file, translations_dir)
    except I18nTransError as e:
        fail(e)

    if as_json:
        typer.echo(json.dumps(keys, ensure_ascii=False, indent=2))
        return

    if not keys:
        console.print("[green]✓[/] Every key is translated in at least one locale")
        return

    console.print(f"[yellow]{len(keys)} key(s) missing from every locale:[/]")
    for key in keys:
        console.print(f"  - {key}", highlight=False)


@app.command()
def keys(
    action: str = typer.Argument(..., help="Action: list, set, status, delete"),
    service: Optional[str] = typer.Argument("openai", help="Service name"),
):
    """Manage the stored API key.

    Examples:
        i18ntrans keys list             # Show key status
        i18ntrans keys set openai       # Store the OpenAI key
        i18ntrans keys delete openai    # Delete the stored key
    """
    from i18ntrans_llms.keys import KeyManager, SERVICES

    km = KeyManager()

    if action in ("list", "status"):
        table = Table(title="API Keys Status")
        table.add_column("Service", style="cyan")
        table.add_column("Status", style="green")
        table.add_column("Source", style="yellow")
        table.add_column("Value", style="dim")

        infos = km.list_keys() if action == "list" else [km.get_key_info(service)]
        for key_info in infos:
            status = "[green]✓ Set[/]" if key_info.is_set else "[red]✗ Not set[/]"
            table.add_row(
                key_info.service,
                status,
                key_info.source,
                key_info.masked_value if key_info.is_set else "-",
            )
        console.print(table)
        console.print("\n[dim]Priority: env > keychain > config file[/]")

    elif action == "set":
        if service not in SERVICES:
            console.print(f"[red]Error:[/] Unknown service '{service}'")
            console.print(f"Available services: {', '.join(SERVICES)}")
            raise typer.Exit(1)

        key = typer.prompt(f"Enter API key for {service}", hide_input=True)
        if not key:
            console.print("[red]Error:[/] Key cannot be empty")
            raise typer.Exit(1)

        storage = km.set_key(service, key)
        console.print(f"[green]✓[/] API key for {service} saved to {storage}")
        if storage == "config":
            console.print(f"[yellow]Note:[/] Key stored in local file ({km.CONFIG_FILE})")

    elif action == "delete":
        if km.delete_key(service):
            console.print(f"[green]✓[/] API key for {service} deleted")
        else:
            console.print(f"[yellow]⚠[/] No key found to delete for {service}")

    else:
        console.print(f"[red]Error:[/] Unknown action '{action}'")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
