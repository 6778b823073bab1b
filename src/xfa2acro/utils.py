# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Utility functions for form repair."""

import logging
import sys
from collections.abc import Generator
from typing import Any

from pikepdf import Array, Dictionary, Name, Pdf, String

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configures logging for xfa2acro.

    Args:
        verbose: If True, DEBUG level is used.
        quiet: If True, only ERROR and higher are output.
            Takes precedence over verbose.

    Returns:
        Configured logger for xfa2acro.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    package_logger = logging.getLogger("xfa2acro")
    package_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    package_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)

    logger.debug("Logging configured with level: %s", logging.getLevelName(level))
    return package_logger


def resolve_indirect(obj: Any) -> Any:
    """Resolve indirect object reference if needed.

    pikepdf objects may be indirect references that need to be resolved.
    This safely handles the resolution without using hasattr which can
    throw exceptions on certain pikepdf object types.

    Args:
        obj: A pikepdf object that may be an indirect reference.

    Returns:
        The resolved object.
    """
    try:
        return obj.get_object()
    except Exception:
        return obj


def read_text(value: Any) -> str | None:
    """Returns the text of a String or Name object.

    Names are returned without their leading slash. Any other object
    type yields None.
    """
    value = resolve_indirect(value)
    if isinstance(value, String):
        return str(value)
    if isinstance(value, Name):
        return str(value)[1:]
    return None


def iter_page_annotations(
    pdf: Pdf,
) -> Generator[tuple[int, Array, int, Dictionary], None, None]:
    """Yield every annotation dictionary of every page in document order.

    Yields:
        ``(page_num, annots, index, annot)`` tuples. ``page_num`` is
        1-based; ``annots`` is the page's resolved /Annots array so callers
        can replace the entry at ``index``.
    """
    for page_num, page in enumerate(pdf.pages, start=1):
        annots = page.obj.get("/Annots")
        if annots is None:
            continue
        annots = resolve_indirect(annots)
        if not isinstance(annots, Array):
            logger.debug("Ignoring non-array /Annots on page %d", page_num)
            continue

        for index in range(len(annots)):
            annot = resolve_indirect(annots[index])
            if not isinstance(annot, Dictionary):
                continue
            yield page_num, annots, index, annot
