import asyncio
import click
import json
import logging
from pathlib import Path
from functools import wraps
from typing import List, Tuple
from sqjs.cache import ValidationCache
from sqjs.compilers import get_compiler
from sqjs.messages import format_error, format_warning
from sqjs.model import DiagramSource
from sqjs.processor import BlockProcessor, OutcomeKind, extract_blocks
from sqjs.renderer import DiagramRenderer
from sqjs.theme import ThemeManager
from sqjs.utils import load_config, LogFormatter
from sqjs.validation import SyntaxValidator

log = logging.getLogger(__name__)

DEFAULT_CONFIG = "config.yaml"


def setup_command(func):
    """Decorator to handle common CLI setup (logging, config loading, version)."""

    @wraps(func)
    def wrapper(config, debug, version=None, **kwargs):
        # Handle --version flag
        if version is not None and version:
            import tomllib

            with open("pyproject.toml", "rb") as f:
                data = tomllib.load(f)
            click.echo(data["project"]["version"])
            return

        # Setup logging
        log_handler = logging.StreamHandler()
        log_handler.setFormatter(LogFormatter())
        logging.basicConfig(level=logging.DEBUG if debug else logging.WARNING, handlers=[log_handler])

        # Default config file is optional, explicitly given one is not
        if config == DEFAULT_CONFIG and not Path(config).exists():
            config = None
        config_obj = load_config(config)
        if debug:
            log.debug(json.dumps(config_obj.model_dump(), indent=4))

        return func(config_obj=config_obj, debug=debug, **kwargs)

    return wrapper


def read_blocks(file: str) -> List[Tuple[str, int]]:
    """Markdown files are scanned for fenced blocks, anything else is one block."""
    text = Path(file).read_text(encoding="UTF-8")
    if Path(file).suffix.lower() in [".md", ".markdown"]:
        return extract_blocks(text)
    return [(text, 0)]


def build_validator(config_obj) -> SyntaxValidator:
    cache = ValidationCache(max_size=config_obj.validation_cache_size, ttl=config_obj.validation_cache_ttl)
    return SyntaxValidator(cache)


def build_renderer(config_obj) -> DiagramRenderer:
    return DiagramRenderer(
        get_compiler(config_obj), build_validator(config_obj), cache_size=config_obj.render_cache_size
    )


@click.group()
def cli():
    pass


@click.command()
@click.option("--config", default=DEFAULT_CONFIG, help="Configuration file.")
@click.option("--debug", default=False, is_flag=True, help="Enable debug.")
@click.option("--version", is_flag=True, help="Show the application's version.")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@setup_command
def validate(config_obj, debug, file):
    """Check diagram syntax without rendering."""
    validator = build_validator(config_obj)
    blocks = read_blocks(file)
    invalid = 0
    for content, position in blocks:
        result = validator.validate(content)
        location = f"{file}:{position + 1}"
        if result.is_empty:
            click.echo(f"{location}: empty")
            continue
        if result.is_valid:
            click.echo(f"{location}: ok")
        else:
            invalid += 1
            click.echo(f"{location}: {len(result.errors)} error(s)")
        for error in result.errors:
            click.echo(format_error(error))
        for warning in result.warnings:
            click.echo(format_warning(warning))
    if invalid:
        raise click.exceptions.Exit(1)


@click.command()
@click.option("--config", default=DEFAULT_CONFIG, help="Configuration file.")
@click.option("--debug", default=False, is_flag=True, help="Enable debug.")
@click.option("--version", is_flag=True, help="Show the application's version.")
@click.option("--format", default="text", type=click.Choice(["text", "json"]), help="Output format.")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@setup_command
def analyze(config_obj, debug, format, file):
    """Print complexity metrics of every diagram block."""
    renderer = build_renderer(config_obj)
    rows = []
    for content, position in read_blocks(file):
        source = DiagramSource.from_text(content, position)
        metrics = renderer.analyze_complexity(source)
        rows.append(
            {
                "block_id": source.block_id,
                "line": position + 1,
                "participants": metrics.participant_count,
                "messages": metrics.message_count,
                "exceeds_threshold": metrics.exceeds_threshold,
            }
        )
    if format == "json":
        click.echo(json.dumps(rows, indent=2))
        return
    for row in rows:
        click.echo(
            f"{file}:{row['line']}: {row['participants']} participants, {row['messages']} messages"
            + (" (large)" if row["exceeds_threshold"] else "")
        )
    if not rows:
        click.echo("No diagram blocks found")


@click.command()
@click.option("--config", default=DEFAULT_CONFIG, help="Configuration file.")
@click.option("--debug", default=False, is_flag=True, help="Enable debug.")
@click.option("--version", is_flag=True, help="Show the application's version.")
@click.option("--theme", default=None, help="Diagram theme (simple or hand-drawn).")
@click.option("--output", default=None, help="Output file path (default: stdout).")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@setup_command
def render(config_obj, debug, theme, output, file):
    """Render every diagram block of a file."""
    renderer = build_renderer(config_obj)
    themes = ThemeManager(config_obj, on_change=renderer.clear_cache)
    if theme is not None:
        try:
            themes.set_theme(theme)
        except ValueError as err:
            raise click.BadParameter(str(err), param_hint="--theme") from err
    processor = BlockProcessor(renderer, theme=themes.theme)

    async def run_all():
        outcomes = []
        for content, position in read_blocks(file):
            outcomes.append(await processor.process(content, position))
        return outcomes

    outcomes = asyncio.run(run_all())

    failed = 0
    artifacts = []
    for outcome in outcomes:
        for message in outcome.messages:
            click.echo(message, err=True)
        if outcome.kind == OutcomeKind.ERROR:
            failed += 1
        elif outcome.kind == OutcomeKind.DIAGRAM and outcome.artifact is not None:
            artifacts.append(outcome.artifact.content)

    output_content = "\n\n".join(artifacts)
    if output:
        with open(output, "w") as f:
            f.write(output_content)
        click.echo(f"{len(artifacts)} diagram(s) written to {output}")
    elif output_content:
        click.echo(output_content)
    if failed:
        raise click.exceptions.Exit(1)


cli.add_command(validate)
cli.add_command(analyze)
cli.add_command(render)

if __name__ == "__main__":
    cli()
