# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Read-only listing of terminal form field names."""

import logging
from collections.abc import Iterable

from pikepdf import Array, Dictionary, Pdf

from ..utils import read_text
from ..utils import resolve_indirect as _resolve_indirect
from .fields import FieldKind, field_kind

logger = logging.getLogger(__name__)


def list_terminal_fields(pdf: Pdf) -> list[str] | None:
    """Returns the partial names of all terminal fields in tree order.

    Non-terminal fields with field children are descended into and not
    listed themselves. The document is not modified.

    Args:
        pdf: Opened pikepdf PDF object.

    Returns:
        List of partial names, or None if the document has no AcroForm.
    """
    acroform = pdf.Root.get("/AcroForm")
    if acroform is None:
        return None
    acroform = _resolve_indirect(acroform)
    if not isinstance(acroform, Dictionary):
        return None

    names: list[str] = []
    fields = acroform.get("/Fields")
    if fields is not None:
        fields = _resolve_indirect(fields)
        if isinstance(fields, Array):
            _collect_terminal_names(fields, names, set())
    return names


def _child_fields(field: Dictionary) -> list[Dictionary]:
    """Returns the kids of a field that are fields rather than widgets."""
    kids = field.get("/Kids")
    if kids is None:
        return []
    kids = _resolve_indirect(kids)
    if not isinstance(kids, Array):
        return []

    children = []
    for kid in kids:
        kid = _resolve_indirect(kid)
        if isinstance(kid, Dictionary) and "/T" in kid:
            children.append(kid)
    return children


def _collect_terminal_names(
    fields: Iterable, names: list[str], visited: set[tuple[int, int]]
) -> None:
    for form_field in fields:
        form_field = _resolve_indirect(form_field)
        if not isinstance(form_field, Dictionary):
            continue

        objgen = form_field.objgen
        if objgen != (0, 0):
            if objgen in visited:
                logger.debug("Field cycle detected at object %s", objgen)
                continue
            visited.add(objgen)

        if field_kind(form_field) is FieldKind.NON_TERMINAL:
            children = _child_fields(form_field)
            if children:
                _collect_terminal_names(children, names, visited)
                continue

        names.append(read_text(form_field.get("/T")) or "")
