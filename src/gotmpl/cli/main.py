"""gotmpl CLI Main Entry Point

Compiles templates with embedded Go code into Go programs.

Usage:
    gotmpl page.tmpl                  # Write page.go beside the template
    gotmpl a.tmpl b.tmpl -o build/    # Write build/a.go and build/b.go
    gotmpl --list templates.txt       # Compile every template in a list file
    gotmpl --recursive site/          # Compile every *.tmpl below site/
    gotmpl page.tmpl --stdout         # Print the generated source
    gotmpl -v                         # Show version
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

import typer

from gotmpl._version import __version__
from gotmpl.cli.discover import collect_templates, output_path
from gotmpl.cli.utils import console, setup_logging
from gotmpl.compiler import Compiler
from gotmpl.config import CompilerConfig, find_config_file
from gotmpl.exceptions import ConfigError, HostSyntaxError, TemplateError

log = logging.getLogger("gotmpl.cli")

FORMATTERS = ("auto", "gofmt", "builtin")


def load_config(
    config_path: Optional[Path],
    site_root: Optional[Path],
    no_merge: bool,
    formatter: Optional[str],
) -> CompilerConfig:
    """Load gotmpl.yaml (explicit or discovered) and apply flag overrides."""
    if config_path is None:
        config_path = find_config_file()
    elif not config_path.exists():
        raise ConfigError(config_path, "file not found")

    config = CompilerConfig.load(config_path) if config_path else CompilerConfig()
    if config_path:
        log.info("using config %s", config_path)

    if site_root is not None:
        config.site_root = site_root
    if no_merge:
        config.merge_literals = False
    if formatter is not None:
        config.formatter.backend = formatter
    return config


def go_build(source_file: Path) -> Optional[str]:
    """Build a generated file with the Go toolchain; return errors or None."""
    result = subprocess.run(
        ["go", "build", "-o", os.devnull, str(source_file)],
        capture_output=True,
        encoding="utf-8",
    )
    if result.returncode != 0:
        return result.stderr.strip() or f"go build exited with {result.returncode}"
    return None


def report_failure(template: Path, exc: TemplateError) -> None:
    typer.secho(f"Error: {template}: {exc}", err=True, fg=typer.colors.RED)
    if isinstance(exc, HostSyntaxError):
        typer.echo(exc.report(), err=True)


typer_app = typer.Typer()


@typer_app.command()
def cli(
    templates: Optional[List[Path]] = typer.Argument(None, help="Template files to compile."),
    version: bool = typer.Option(False, "-v", "--version", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", help="Log each compiled template."),
    list_file: Optional[Path] = typer.Option(
        None, "--list", help="File listing templates, one per line."
    ),
    recursive: Optional[Path] = typer.Option(
        None, "--recursive", "-r", help="Compile every template below this directory."
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Directory for generated files (default: beside each template)."
    ),
    stdout: bool = typer.Option(False, "--stdout", help="Print generated source instead of writing files."),
    site_root: Optional[Path] = typer.Option(
        None, "--site-root", help="Base directory for absolute template references."
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to gotmpl.yaml."),
    no_merge: bool = typer.Option(False, "--no-merge", help="Do not merge adjacent literal sections."),
    formatter: Optional[str] = typer.Option(
        None, "--formatter", help="Printer backend: auto, gofmt or builtin."
    ),
    build: bool = typer.Option(False, "--go-build", help="Run 'go build' on each generated file."),
) -> None:
    """Compile templates with embedded Go code into Go programs.

    Examples:
        gotmpl index.tmpl               Write index.go
        gotmpl -r site -o build         Compile a whole site into build/
        gotmpl index.tmpl --stdout      Print the program
    """
    if version:
        typer.echo(f"gotmpl {__version__}")
        raise typer.Exit()

    setup_logging(verbose)

    if formatter is not None and formatter not in FORMATTERS:
        typer.secho(
            f"Error: --formatter must be one of {', '.join(FORMATTERS)}", err=True, fg=typer.colors.RED
        )
        raise typer.Exit(code=2)
    if build and stdout:
        typer.secho("Error: --go-build needs generated files, not --stdout", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=2)
    if build and shutil.which("go") is None:
        typer.secho("Error: --go-build needs the go tool on PATH", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    try:
        config = load_config(config_path, site_root, no_merge, formatter)
    except ConfigError as exc:
        typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    try:
        paths = collect_templates(templates or [], list_file, recursive, config.template_suffix)
    except OSError as exc:
        typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if not paths:
        typer.secho("Error: no templates given", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    compiler = Compiler(config)
    failed: List[Path] = []

    for template in paths:
        try:
            source = compiler.compile(template)
        except TemplateError as exc:
            report_failure(template, exc)
            failed.append(template)
            continue

        if stdout:
            typer.echo(source, nl=False)
            continue

        target = output_path(template, output_dir, config.template_suffix, config.output_suffix)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(source, encoding="utf-8")
        except OSError as exc:
            typer.secho(f"Error: {template}: cannot write {target}: {exc}", err=True, fg=typer.colors.RED)
            failed.append(template)
            continue
        log.info("%s -> %s", template, target)

        if build:
            errors = go_build(target)
            if errors is not None:
                typer.secho(f"Error: go build {target}:\n{errors}", err=True, fg=typer.colors.RED)
                failed.append(template)

    if not stdout:
        done = len(paths) - len(failed)
        console.print(f"[green]Compiled {done}[/green] of {len(paths)} template(s)")
    if failed:
        typer.secho(f"{len(failed)} template(s) failed", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)


def app() -> None:
    """Entry point for the CLI."""
    typer_app()


if __name__ == "__main__":
    app()
