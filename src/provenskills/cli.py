"""ProvenSkills CLI — package and manage skill artifacts from the terminal.

Commands:
    build       Validate a skill directory and store it as an artifact
    list        Show all artifacts in the local store
    validate    Check a skill directory without storing it

Exit codes: 0 success, 1 general error, 2 validation failure,
3 store conflict, 4 I/O failure.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import STORE_ENV_VAR, STORE_HOME, __version__
from .builder import build_skill, check_skill_dir
from .errors import ConflictError, FrontmatterError, ProvenSkillsError, ValidationFailure
from .store import ArtifactStore, resolve_store_root

console = Console()
err_console = Console(stderr=True)


def _fail(exc: ProvenSkillsError, path: Optional[str] = None) -> NoReturn:
    """Report an error on stderr and exit with its code.

    Frontmatter errors for ``path`` are reported like a validation failure
    with a single violation.
    """
    if isinstance(exc, FrontmatterError) and path is not None:
        exc = ValidationFailure(path, [str(exc)])

    if isinstance(exc, ValidationFailure):
        err_console.print(f"[red]error:[/red] {escape(str(exc))}\n")
        for message in exc.errors:
            err_console.print(f"  - {escape(message)}")
    elif isinstance(exc, ConflictError):
        err_console.print(f"[red]error:[/red] {escape(str(exc))}\n")
        err_console.print("Use [cyan]--force[/cyan] to overwrite.")
    else:
        err_console.print(f"[red]error:[/red] {escape(str(exc))}")
    sys.exit(int(exc.exit_code))


def _store(ctx: click.Context) -> ArtifactStore:
    return ArtifactStore(ctx.obj["store_root"])


@click.group()
@click.version_option(__version__, prog_name="psk")
@click.option(
    "--store",
    "store_path",
    type=click.Path(file_okay=False),
    default=None,
    help=f"Store location (default: ${STORE_ENV_VAR} or {STORE_HOME}).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, store_path: Optional[str], verbose: bool) -> None:
    """ProvenSkills — package and manage skill artifacts.

    Builds skill directories containing a SKILL.md into a versioned
    local store, lists what is stored, and validates skill metadata.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["store_root"] = resolve_store_root(store_path)


@main.command()
@click.argument("path", type=click.Path())
@click.option("--maintainer", required=True, help="Identity of the person packaging the skill.")
@click.option("--force", is_flag=True, help="Overwrite an existing artifact.")
@click.option("--json", "json_output", is_flag=True, help="Output the result as JSON.")
@click.pass_context
def build(ctx: click.Context, path: str, maintainer: str, force: bool, json_output: bool) -> None:
    """Validate a skill directory and add it to the store."""
    try:
        result = build_skill(Path(path), maintainer, _store(ctx), force=force)
    except ProvenSkillsError as exc:
        _fail(exc, path)

    m = result.manifest
    if json_output:
        payload = {
            "name": m.name,
            "version": m.version,
            "author": m.author,
            "maintainer": m.maintainer,
            "path": result.path + "/",
        }
        click.echo(json.dumps(payload, indent=2))
        return

    console.print(f"[green]Built skill:[/green] {escape(m.name)}@{escape(m.version)}")
    console.print(f"  author:     {escape(m.author)}")
    console.print(f"  maintainer: {escape(m.maintainer)}")
    console.print(f"  stored:     {escape(result.path)}/")


@main.command("list")
@click.option("--json", "json_output", is_flag=True, help="Output as a JSON array.")
@click.pass_context
def list_skills(ctx: click.Context, json_output: bool) -> None:
    """Show all artifacts in the store."""
    try:
        manifests = _store(ctx).list()
    except ProvenSkillsError as exc:
        _fail(exc)

    if json_output:
        entries = [
            {
                "name": m.name,
                "version": m.version,
                "description": m.description,
                "author": m.author,
                "maintainer": m.maintainer,
            }
            for m in manifests
        ]
        click.echo(json.dumps(entries, indent=2))
        return

    if not manifests:
        console.print("[dim]No skills found in store.[/dim]")
        return

    table = Table(title="Stored Skills")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Author", style="green")
    table.add_column("Maintainer", style="yellow")

    for m in manifests:
        table.add_row(escape(m.name), escape(m.version), escape(m.author), escape(m.maintainer))

    console.print(table)


@main.command()
@click.argument("path", type=click.Path())
@click.option("--json", "json_output", is_flag=True, help="Output the result as JSON.")
def validate(path: str, json_output: bool) -> None:
    """Check a skill directory's SKILL.md without storing it."""
    try:
        report = check_skill_dir(Path(path))
    except ProvenSkillsError as exc:
        _fail(exc, path)

    if not report.valid:
        if json_output:
            payload = {"valid": False, "path": path, "errors": report.errors}
            click.echo(json.dumps(payload, indent=2), err=True)
            sys.exit(int(ValidationFailure.exit_code))
        _fail(ValidationFailure(path, report.errors))

    fm = report.frontmatter
    if json_output:
        payload = {
            "valid": True,
            "path": path,
            "name": fm.name,
            "description": f"present ({len(fm.description)} chars)",
            "version": report.version,
            "author": fm.metadata.author,
            "dirMatch": True,
        }
        click.echo(json.dumps(payload, indent=2))
        return

    console.print(f"[green]Validation passed:[/green] {escape(path)}\n")
    console.print(f"  name:        {escape(fm.name)} (valid)")
    console.print(f"  description: present ({len(fm.description)} chars)")
    console.print(f"  version:     {escape(report.version)} (valid semver)")
    console.print(f"  author:      {escape(fm.metadata.author)} (present)")
    console.print(f"  dir match:   {escape(fm.name)} == {escape(report.dir_name)} (ok)")


if __name__ == "__main__":
    main()
