# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Removal of document-level named JavaScript.

Handles the Named JavaScript tree (/Root/Names/JavaScript). Action
dictionaries are handled by remove_actions().
"""

import logging

from pikepdf import Dictionary, Pdf

from ..utils import resolve_indirect as _resolve_indirect

logger = logging.getLogger(__name__)


def remove_javascript(pdf: Pdf) -> int:
    """Removes the Named JavaScript tree from the PDF.

    Other entries of the Names dictionary (embedded files, destinations)
    are preserved.

    Args:
        pdf: Opened pikepdf PDF object (modified in place).

    Returns:
        Number of JavaScript elements removed (0 or 1).
    """
    if "/Names" not in pdf.Root:
        return 0

    names = _resolve_indirect(pdf.Root.Names)
    if isinstance(names, Dictionary) and "/JavaScript" in names:
        del names["/JavaScript"]
        logger.info("Named JavaScript removed from Names dictionary")
        return 1

    return 0
