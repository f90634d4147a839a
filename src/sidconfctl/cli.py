from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from tabulate import tabulate

from sidconf.config import LoadResult, load_config
from sidconf.errors import ConfigError, ErrorKind, format_config_error, format_issue, suggest_troubleshooting_steps
from sidconf.ini import Document
from sidconf.paths import resolve_config_path
from sidconf.reader import format_time

GROUPS = ("sidplay2", "console", "audio", "emulation")
TIME_FIELDS = {"play_length", "record_length"}


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file; defaults to $SIDPLAYFP_CONFIG or the XDG location",
)
@click.option(
    "--json-output",
    "json_output",
    is_flag=True,
    help="Output JSON instead of tables (pretty-printed)",
)
@click.option(
    "--yaml-output",
    "yaml_output",
    is_flag=True,
    help="Output YAML instead of tables",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Log what the CLI is doing to stderr (-vv for debug output)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    json_output: bool,
    yaml_output: bool,
    verbose: int,
) -> None:
    """sidplayfp configuration tool.

    Reads and edits sidplayfp.ini, found via --config, the SIDPLAYFP_CONFIG
    environment variable or the XDG config directory.
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = config_path
    ctx.obj["json"] = json_output
    ctx.obj["yaml"] = yaml_output
    ctx.obj["verbose"] = verbose

    # Configure logging once per process
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def main() -> None:  # entry point
    cli(standalone_mode=True)


def _emit(ctx: click.Context, data: Any) -> bool:
    """Print ``data`` as JSON or YAML if requested; False means print a table."""
    if ctx.obj.get("json"):
        click.echo(json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False))
        return True
    if ctx.obj.get("yaml"):
        click.echo(yaml.safe_dump(data, sort_keys=True, allow_unicode=True, default_flow_style=False), nl=False)
        return True
    return False


def _config_path(ctx: click.Context, create_dirs: bool = True) -> Path:
    log = logging.getLogger("sidconfctl.config")
    if ctx.obj.get("config") is not None:
        return ctx.obj["config"]
    try:
        path = resolve_config_path(create_dirs=create_dirs)
    except ConfigError as e:
        click.echo(format_config_error(e), err=True)
        raise SystemExit(2)
    log.info("Using config file %s", path)
    return path


def _fail_load(ctx: click.Context, result: LoadResult) -> None:
    click.echo(f"Error reading config file {result.path or ''}".rstrip(), err=True)
    for issue in result.issues:
        if issue.kind is ErrorKind.IO:
            click.echo(f"  {issue.message}", err=True)
    if ctx.obj.get("verbose"):
        suggestions = suggest_troubleshooting_steps(result.issues)
        if suggestions:
            click.echo("\nTroubleshooting suggestions:", err=True)
            for suggestion in suggestions[:3]:  # Show top 3 suggestions
                click.echo(f"  • {suggestion}", err=True)
    raise SystemExit(2)


def _display(field_name: str, value: Any) -> str:
    if field_name in TIME_FIELDS and isinstance(value, int):
        return format_time(value)
    if value is None or value == "":
        return "—"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@cli.command("path")
@click.pass_context
def path_cmd(ctx: click.Context) -> None:
    """Show which configuration file is used."""
    path = _config_path(ctx, create_dirs=False)
    if _emit(ctx, {"path": str(path), "exists": path.is_file()}):
        return
    click.echo(str(path))


@cli.command("show")
@click.option("--group", "group", type=click.Choice(GROUPS), help="Only show one settings group")
@click.option("--no-save", is_flag=True, help="Don't write missing keys back to the file")
@click.pass_context
def show(ctx: click.Context, group: Optional[str], no_save: bool) -> None:
    """Load the configuration and show the resulting settings."""
    log = logging.getLogger("sidconfctl.show")
    path = _config_path(ctx)
    log.info("Loading config...")
    result = load_config(path, save=not no_save)
    if not result.ok:
        _fail_load(ctx, result)
    log.info("Loaded config from %s", result.path)

    for issue in result.issues:
        click.echo(f"warning: {format_issue(issue)}", err=True)

    data = result.settings.to_dict()
    if group:
        data = {group: data[group]}

    if _emit(ctx, data):
        return

    rows = []
    for group_name, values in data.items():
        for field_name, value in values.items():
            rows.append([group_name, field_name, _display(field_name, value)])
    log.info("Rendering %d settings", len(rows))
    click.echo(tabulate(rows, headers=["GROUP", "FIELD", "VALUE"]))


@cli.command("check")
@click.pass_context
def check(ctx: click.Context) -> None:
    """Report problems in the configuration file without changing it."""
    log = logging.getLogger("sidconfctl.check")
    path = _config_path(ctx, create_dirs=False)
    result = load_config(path, save=False, create=False)
    if not result.ok:
        _fail_load(ctx, result)
    log.info("Found %d issues in %s", len(result.issues), result.path)

    if not _emit(ctx, {"path": str(result.path), "issues": result.to_dict()["issues"]}):
        if not result.issues:
            click.echo("No problems found")
        else:
            rows = [
                [
                    issue.kind.value,
                    issue.line if issue.line is not None else "—",
                    issue.section or "—",
                    issue.key or "—",
                    issue.message,
                ]
                for issue in result.issues
            ]
            click.echo(tabulate(rows, headers=["KIND", "LINE", "SECTION", "KEY", "MESSAGE"]))

    if result.issues:
        raise SystemExit(1)


@cli.command("dump")
@click.pass_context
def dump(ctx: click.Context) -> None:
    """Print the configuration file as it would be written back."""
    log = logging.getLogger("sidconfctl.dump")
    path = _config_path(ctx, create_dirs=False)
    doc = Document()
    if not doc.load(path):
        click.echo(f"Cannot read config file: {path}", err=True)
        raise SystemExit(2)

    data = {
        "path": str(path),
        "sections": [
            {
                "name": sect.name,
                "entries": [{"key": entry.key, "value": entry.value} for entry in sect.entries],
            }
            for sect in doc
        ],
    }
    text = doc.dumps()
    log.info("Dumping %d sections from %s", len(data["sections"]), path)
    doc.close()

    if _emit(ctx, data):
        return
    click.echo(text, nl=False)


@cli.command("get")
@click.argument("section")
@click.argument("key")
@click.pass_context
def get_value(ctx: click.Context, section: str, key: str) -> None:
    """Print the raw value of KEY in SECTION."""
    path = _config_path(ctx, create_dirs=False)
    doc = Document()
    if not doc.load(path):
        click.echo(f"Cannot read config file: {path}", err=True)
        raise SystemExit(2)

    sect = doc.set_section(section)
    value = sect.get_value(key) if sect is not None else None
    doc.close()
    if value is None:
        click.echo(f"Key not found: [{section}] {key}", err=True)
        raise SystemExit(1)

    if _emit(ctx, {"section": section, "key": key, "value": value}):
        return
    click.echo(value)


@cli.command("set")
@click.argument("section")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_value(ctx: click.Context, section: str, key: str, value: str) -> None:
    """Set KEY in SECTION to VALUE, adding the section or key if needed."""
    log = logging.getLogger("sidconfctl.edit")
    path = _config_path(ctx)
    with Document() as doc:
        if not doc.open_or_create(path):
            click.echo(f"Cannot open config file: {path}", err=True)
            raise SystemExit(2)
        sect = doc.set_section(section)
        if sect is None:
            sect = doc.add_section(section)
        sect.set_value(key, value)
        log.info("Set [%s] %s = %s", section, key, value)
        if not doc.close():
            click.echo(f"Cannot write config file: {path}", err=True)
            raise SystemExit(2)


@cli.command("unset")
@click.argument("section")
@click.argument("key")
@click.pass_context
def unset_value(ctx: click.Context, section: str, key: str) -> None:
    """Remove KEY from SECTION."""
    log = logging.getLogger("sidconfctl.edit")
    path = _config_path(ctx, create_dirs=False)
    with Document() as doc:
        if not doc.load(path):
            click.echo(f"Cannot read config file: {path}", err=True)
            raise SystemExit(2)
        sect = doc.set_section(section)
        if sect is None or sect.get_value(key) is None:
            click.echo(f"Key not found: [{section}] {key}", err=True)
            raise SystemExit(1)
        sect.remove_value(key)
        log.info("Removed [%s] %s", section, key)
        if not doc.close():
            click.echo(f"Cannot write config file: {path}", err=True)
            raise SystemExit(2)


if __name__ == "__main__":  # pragma: no cover
    main()
