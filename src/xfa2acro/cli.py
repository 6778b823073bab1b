# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Click-based CLI for xfa2acro.

This module provides the command-line interface for repairing
converted XFA forms and listing their fields.
"""

# Standard Library
import logging
import os
import sys
from pathlib import Path

# Third Party
import click
from colorama import Fore, Style, init

# Local
from . import __version__
from .exceptions import RepairError
from .repair import (
    RepairResult,
    generate_output_path,
    list_fields,
    repair_directory,
    repair_pdf,
)
from .utils import setup_logging

EXIT_SUCCESS = 0
EXIT_REPAIR_FAILED = 1
EXIT_USAGE = 2
EXIT_INPUT_UNREADABLE = 3

logger = logging.getLogger(__name__)


def print_success(msg: str) -> None:
    """Prints a success message in green.

    Args:
        msg: The message to output.
    """
    click.echo(f"{Fore.GREEN}\u2713{Style.RESET_ALL} {msg}")


def print_error(msg: str) -> None:
    """Prints an error message in red.

    Args:
        msg: The error message to output.
    """
    click.echo(f"{Fore.RED}\u2717 Error:{Style.RESET_ALL} {msg}", err=True)


def print_info(msg: str) -> None:
    click.echo(f"  - {msg}")


def _print_result(result: RepairResult, quiet: bool) -> None:
    """Prints the repair result in a formatted way.

    Args:
        result: The repair result.
        quiet: If True, only output errors.
    """
    if not result.success:
        print_error(f"{result.input_path.name}: {result.error}")
        return
    if quiet:
        return

    how = "Converted remotely + repaired" if result.converted_remotely else "Repaired"
    print_success(
        f"{how}: {result.input_path.name} -> {result.output_path} "
        f"({result.processing_time:.2f}s)"
    )
    for message in result.messages:
        print_info(message)


@click.command()
@click.argument("input_path", required=False, type=click.Path())
@click.argument("output", required=False, type=click.Path())
@click.option(
    "--list-fields",
    "list_only",
    is_flag=True,
    help="Only list the terminal field names of INPUT (read-only)",
)
@click.option(
    "--no-remote",
    is_flag=True,
    help="Never use the remote XFA conversion service, even if "
    "ASPOSE_CLIENT_ID/ASPOSE_CLIENT_SECRET are set",
)
@click.option(
    "-r",
    "--recursive",
    is_flag=True,
    help="Process directories recursively",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    help="Only output errors",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Detailed output",
)
@click.version_option(version=__version__)
def main(
    input_path: str | None,
    output: str | None,
    list_only: bool,
    no_remote: bool,
    recursive: bool,
    quiet: bool,
    verbose: bool,
) -> None:
    """Repairs orphan form widgets and strips scripts from PDF forms.

    INPUT is the path to the input PDF or a directory.
    OUTPUT is optionally the path for the repaired PDF
    (default: INPUT with "_clean" before ".pdf").
    """
    # Initialize colorama for Windows compatibility
    init()

    if input_path is None:
        click.echo(click.get_current_context().get_help(), err=True)
        sys.exit(EXIT_USAGE)

    if list_only and output is not None:
        raise click.UsageError("--list-fields takes exactly one INPUT")

    setup_logging(verbose=verbose, quiet=quiet)

    input_path_obj = Path(input_path)

    try:
        if input_path_obj.is_dir():
            if list_only:
                raise click.UsageError("--list-fields requires a file, not a directory")
            exit_code = _repair_directory(
                input_path_obj, output, recursive, quiet, use_remote=not no_remote
            )
        elif not input_path_obj.is_file() or not os.access(input_path_obj, os.R_OK):
            print_error(f"Input not found or unreadable: {input_path}")
            exit_code = EXIT_INPUT_UNREADABLE
        elif list_only:
            exit_code = _list_fields(input_path_obj)
        else:
            exit_code = _repair_single_file(
                input_path_obj, output, quiet, use_remote=not no_remote
            )

    except RepairError as e:
        print_error(str(e))
        exit_code = EXIT_REPAIR_FAILED
    except click.UsageError:
        raise
    except Exception as e:
        logger.exception("Unexpected error")
        print_error(f"Unexpected error: {e}")
        exit_code = EXIT_REPAIR_FAILED

    sys.exit(exit_code)


def _list_fields(input_path: Path) -> int:
    """Prints one terminal field name per line.

    Returns:
        Exit code.
    """
    names = list_fields(input_path)
    if names is None:
        click.echo("(no AcroForm)")
        return EXIT_SUCCESS
    for name in names:
        click.echo(name)
    return EXIT_SUCCESS


def _repair_single_file(
    input_path: Path,
    output: str | None,
    quiet: bool,
    *,
    use_remote: bool = True,
) -> int:
    """Repairs a single PDF file.

    Args:
        input_path: Path to the input PDF.
        output: Optional output path.
        quiet: Whether to only output errors.
        use_remote: Whether the remote conversion service may be used.

    Returns:
        Exit code.
    """
    output_path = Path(output) if output else generate_output_path(input_path)

    if not quiet:
        click.echo(f"Repairing {input_path.name}...")

    result = repair_pdf(input_path, output_path, use_remote=use_remote)
    _print_result(result, quiet)
    return EXIT_SUCCESS


def _repair_directory(
    input_dir: Path,
    output: str | None,
    recursive: bool,
    quiet: bool,
    *,
    use_remote: bool = True,
) -> int:
    """Repairs all PDFs in a directory.

    Args:
        input_dir: Input directory.
        output: Optional output directory.
        recursive: Whether to process recursively.
        quiet: Whether to only output errors.
        use_remote: Whether the remote conversion service may be used.

    Returns:
        Exit code.
    """
    output_dir = Path(output) if output else None

    if not quiet:
        mode = "recursive" if recursive else "non-recursive"
        click.echo(f"Repairing directory {input_dir} ({mode})...")

    results = repair_directory(
        input_dir=input_dir,
        output_dir=output_dir,
        recursive=recursive,
        show_progress=not quiet,
        use_remote=use_remote,
    )

    successful = [r for r in results if r.success]
    failed = [r for r in results if not r.success]

    if not quiet:
        click.echo()
        click.echo("Summary:")
        print_success(f"{len(successful)} file(s) successfully repaired")
        if failed:
            print_error(f"{len(failed)} file(s) failed")
            for result in failed:
                click.echo(f"  - {result.input_path.name}: {result.error}", err=True)

    if failed:
        return EXIT_REPAIR_FAILED
    return EXIT_SUCCESS


if __name__ == "__main__":
    main()
