import logging
import sys
import time
from typing import List, Optional, Sequence

import click

from . import __version__
from .cli_config import OUTPUT_FORMATS, load_config
from .error_handling import GoModWhatError, get_error_handler, setup_error_handling
from .loader import load_requirements
from .matcher import find_requirements
from .options import QueryOptions, build_options
from .reporting import LookupReporter
from .structured_logging import configure_logging, log_query_complete, log_query_start

PROG_NAME = "go-mod-what"

USAGE = """
NAME
  go-mod-what - get the version of a package in a go.mod file

SYNOPSIS
  go-mod-what [options] <package> [<package> ...]

OPTIONS
"""

USAGE_EXAMPLE = """
EXAMPLES
  To get the version of a package:
      $ go-mod-what github.com/gorilla/mux
      github.com/gorilla/mux v1.8.0

  To get the version of multiple packages:
      $ go-mod-what github.com/gorilla/mux github.com/gorilla/schema
      github.com/gorilla/mux v1.8.0
      github.com/gorilla/schema v1.2.0

  To get the version of multiple packages with a wildcard:
      $ go-mod-what 'github.com/gorilla/*'
      github.com/gorilla/mux v1.8.0
      github.com/gorilla/schema v1.2.0

  To get the version of a package with a custom go.mod file path:
      $ go-mod-what -modfile ../go.mod github.com/gorilla/mux
      github.com/gorilla/mux v1.8.0

  To get the version of a package with only the version:
      $ go-mod-what -only-version github.com/gorilla/mux
      v1.8.0
"""


def render_usage(ctx: click.Context) -> str:
    """Build the full usage text: header, option list and examples."""
    formatter = ctx.make_formatter()
    rows = [
        record
        for record in (param.get_help_record(ctx) for param in ctx.command.get_params(ctx))
        if record
    ]
    with formatter.indentation():
        formatter.write_dl(rows)
    return USAGE + formatter.getvalue() + USAGE_EXAMPLE


def run_query(options: QueryOptions) -> int:
    """
    Look up the requested packages and print the results.

    Returns:
        int: 1 if a pattern went unmatched and that counts as failure, else 0

    Raises:
        GoModWhatError: If the manifest cannot be read or parsed
    """
    start = time.monotonic()
    log_query_start(options.modfile, options.patterns)

    requirements = load_requirements(options.modfile)
    result = find_requirements(requirements, options.patterns)

    reporter = LookupReporter(
        output_format=options.output_format,
        only_version=options.only_version,
        separator=options.separator,
    )
    reporter.print_results(result, options.modfile)

    log_query_complete(
        match_count=len(result.matches),
        missing_count=len(result.missing),
        duration_ms=int((time.monotonic() - start) * 1000),
    )

    if result.missing and options.fail_on_missing:
        return 1
    return 0


@click.command(
    name=PROG_NAME,
    add_help_option=False,
    context_settings={"max_content_width": 100},
)
@click.option(
    "-modfile",
    "--modfile",
    "modfile",
    metavar="PATH",
    default=None,
    help="path to go.mod file or its directory (default \"./go.mod\")",
)
@click.option("-help", "--help", "-h", "show_help", is_flag=True, help="show help")
@click.option("-version", "--version", "show_version", is_flag=True, help="show version")
@click.option(
    "-only-version",
    "--only-version",
    "only_version",
    is_flag=True,
    help="only print the version",
)
@click.option(
    "-format",
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
    default=None,
    help="output format (default \"text\")",
)
@click.argument("patterns", nargs=-1)
@click.pass_context
def cli(
    ctx: click.Context,
    modfile: Optional[str],
    show_help: bool,
    show_version: bool,
    only_version: bool,
    output_format: Optional[str],
    patterns: Sequence[str],
) -> None:
    """Get the version of a package in a go.mod file."""
    config = load_config()
    configure_logging(
        config.logging.log_level,
        enable_json=config.logging.enable_json,
        log_format=config.logging.log_format,
    )
    setup_error_handling(
        log_level=getattr(logging, config.logging.log_level.upper(), logging.WARNING)
    )

    try:
        options = build_options(
            modfile,
            patterns,
            only_version=only_version,
            show_help=show_help,
            show_version=show_version,
            output_format=output_format,
            config=config,
        )

        if options.show_help:
            click.echo(render_usage(ctx), nl=False)
            exit_code = 0
        elif options.show_version:
            click.echo(__version__)
            exit_code = 0
        else:
            exit_code = run_query(options)
    except GoModWhatError as e:
        get_error_handler().report(e, "main", "cli")
        click.echo(f"{e}\n", err=True)
        if e.show_usage:
            click.echo(render_usage(ctx), err=True, nl=False)
        exit_code = 1

    ctx.exit(exit_code)


def parse_args(args: List[str]) -> QueryOptions:
    """
    Parse an argument list into QueryOptions without touching the process.

    Raises:
        click.ClickException: If the arguments are malformed
        GoModWhatError: If the arguments fail validation
    """
    with cli.make_context(PROG_NAME, list(args)) as ctx:
        params = ctx.params
        return build_options(
            params["modfile"],
            params["patterns"],
            only_version=params["only_version"],
            show_help=params["show_help"],
            show_version=params["show_version"],
            output_format=params["output_format"],
        )


def main(argv: Optional[List[str]] = None) -> None:
    """Console entry point; the only place the process exit status is set."""
    try:
        exit_code = cli.main(args=argv, prog_name=PROG_NAME, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        exit_code = 1
    except click.Abort:
        click.echo("Aborted!", err=True)
        exit_code = 1
    sys.exit(exit_code or 0)


if __name__ == "__main__":
    main()
