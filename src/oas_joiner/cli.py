"""Command line interface entry point."""

from __future__ import annotations

import logging
import sys

import click

from oas_joiner.configuration import DEFAULT_CONFIG_FILENAME, write_placeholder_configuration
from oas_joiner.join_execution import JoinError, JoinRequest, execute_join_run


class CliError(Exception):
    """Custom CLI error."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="oas-joiner")
def cli() -> None:
    """Join several OpenAPI documents into one."""


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML join configuration to write",
)
def generate_config(output_path: str) -> None:
    """Generate a placeholder YAML join configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="join")
@click.argument("spec_paths", nargs=-1, required=True, type=click.Path(path_type=str))
@click.option(
    "--output",
    "output_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path of the merged document; .json or .yaml selects the format",
)
@click.option(
    "--config",
    "config_path",
    required=False,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON join configuration file",
)
@click.option(
    "--report",
    "report_path",
    required=False,
    type=click.Path(path_type=str),
    help="Optional path for the collision report workbook (.xlsx)",
)
@click.option("--verbose", is_flag=True, default=False, help="Log merge steps to stderr.")
def join(
    spec_paths: tuple[str, ...],
    output_path: str,
    config_path: str | None,
    report_path: str | None,
    verbose: bool,
) -> None:
    """Join the given API documents, left to right, into one document."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    try:
        outcome = execute_join_run(
            JoinRequest(
                spec_paths=tuple(spec_paths),
                output_path=output_path,
                config_path=config_path,
                report_path=report_path,
            )
        )
    except JoinError as exc:
        raise CliError(str(exc)) from exc

    result = outcome.result
    for warning in result.warnings:
        click.echo(f"warning: {warning}", err=True)
    click.echo(
        f"joined {len(spec_paths)} documents: {result.statistics.path_count} paths, "
        f"{result.statistics.schema_count} schemas, "
        f"{result.collision_count} collision(s) resolved",
        err=True,
    )
    click.echo(str(outcome.output_path))
    if outcome.report_path is not None:
        click.echo(str(outcome.report_path))


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
