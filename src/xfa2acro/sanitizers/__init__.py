# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Script sanitization.

This module provides functions to remove every element of a PDF that
can execute code: action dictionaries, named JavaScript and XFA
script/event nodes.
"""

import logging
from typing import Any

from pikepdf import Pdf

from .actions import remove_actions, remove_field_actions
from .javascript import remove_javascript
from .xfa import clean_xfa_packet, strip_xfa_scripts

logger = logging.getLogger(__name__)


def sanitize_scripts(pdf: Pdf) -> dict[str, Any]:
    """Removes all scripting from the PDF.

    PDF-level actions and named JavaScript are removed first, then the
    XFA packets are cleaned. Safe to run repeatedly.

    Args:
        pdf: Opened pikepdf PDF object (modified in place).

    Returns:
        Dictionary with statistics about performed sanitizations:
        - actions_removed: Catalog, page and annotation actions removed
        - field_actions_removed: Form field actions removed
        - javascript_removed: Named JavaScript trees removed (0 or 1)
        - xfa_packets_cleaned: XFA packets rewritten
        - xfa_packets_failed: XFA packets left unmodified after an error
        - xfa_nodes_removed: XFA <event>/<script> nodes removed
    """
    logger.debug("Removing scripts")

    result: dict[str, Any] = {
        "actions_removed": remove_actions(pdf),
        "field_actions_removed": remove_field_actions(pdf),
        "javascript_removed": remove_javascript(pdf),
    }
    result.update(strip_xfa_scripts(pdf))
    return result


__all__ = [
    "clean_xfa_packet",
    "remove_actions",
    "remove_field_actions",
    "remove_javascript",
    "sanitize_scripts",
    "strip_xfa_scripts",
]
