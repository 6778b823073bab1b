# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Removal of action dictionaries that can run scripts.

Every action entry point is removed unconditionally: the document open
action, document/page additional actions, and the /A and /AA entries of
annotations and form fields. Whether an action is JavaScript or not is
not inspected.
"""

import logging

import pikepdf
from pikepdf import Pdf

from ..utils import iter_page_annotations
from ..utils import resolve_indirect as _resolve_indirect

logger = logging.getLogger(__name__)

# Keys holding an action (/A) or an additional-actions dictionary (/AA)
ACTION_KEYS = ("/A", "/AA")


def remove_actions(pdf: Pdf) -> int:
    """Removes catalog, page and annotation actions from the PDF.

    Removes:
    - /OpenAction and /AA from the document catalog
    - /AA from every page
    - /A and /AA from every annotation on every page

    Missing entries are skipped silently.

    Args:
        pdf: Opened pikepdf PDF object (modified in place).

    Returns:
        Number of action entries removed.
    """
    removed_count = 0

    for key in ("/OpenAction", "/AA"):
        if key in pdf.Root:
            del pdf.Root[key]
            removed_count += 1
            logger.debug("Catalog %s removed", key)

    for page_num, page in enumerate(pdf.pages, start=1):
        if "/AA" in page.obj:
            del page.obj["/AA"]
            removed_count += 1
            logger.debug("Page /AA removed on page %d", page_num)

    for page_num, _annots, _index, annot in iter_page_annotations(pdf):
        for key in ACTION_KEYS:
            if key in annot:
                del annot[key]
                removed_count += 1
                logger.debug("Annotation %s removed on page %d", key, page_num)

    if removed_count > 0:
        logger.info("%d action(s) removed", removed_count)
    return removed_count


def remove_field_actions(pdf: Pdf) -> int:
    """Removes /A and /AA from all fields of the AcroForm tree.

    Non-terminal fields are not annotations and are never visited by the
    page walk in remove_actions(), but viewers still run their keystroke,
    format and calculate scripts.

    Args:
        pdf: Opened pikepdf PDF object (modified in place).

    Returns:
        Number of action entries removed.
    """
    if "/AcroForm" not in pdf.Root:
        return 0

    acroform = _resolve_indirect(pdf.Root.AcroForm)
    fields = acroform.get("/Fields")
    if fields is None:
        return 0

    removed_count = _remove_actions_from_fields(_resolve_indirect(fields))
    if removed_count > 0:
        logger.info("%d form field action(s) removed", removed_count)
    return removed_count


def _remove_actions_from_fields(
    fields: pikepdf.Array,
    _visited: set[tuple[int, int]] | None = None,
) -> int:
    """Removes actions from form fields recursively.

    Args:
        fields: Array of form field objects.
        _visited: Set of visited objgen tuples for cycle detection.

    Returns:
        Number of actions removed.
    """
    if _visited is None:
        _visited = set()

    removed_count = 0

    for field in fields:
        field = _resolve_indirect(field)
        if not isinstance(field, pikepdf.Dictionary):
            continue

        field_key = field.objgen
        if field_key != (0, 0):
            if field_key in _visited:
                continue
            _visited.add(field_key)

        for key in ACTION_KEYS:
            if key in field:
                del field[key]
                removed_count += 1

        kids = field.get("/Kids")
        if kids is not None:
            removed_count += _remove_actions_from_fields(
                _resolve_indirect(kids), _visited
            )

    return removed_count
