# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Re-attachment of orphan widget annotations to the AcroForm.

XFA to AcroForm converters sometimes emit widget annotations that carry a
field type (/FT) and a name (/T) on the page but are never linked into
/AcroForm/Fields. Viewers then show the widgets but cannot fill, save or
export them. This module links every such widget to a field: a field with
the same (disambiguated) partial name is reused, otherwise a new one is
synthesized by the field factory.

Widgets that already have a /Parent are never touched, so running the
reconciliation twice changes nothing the second time.
"""

import logging
from dataclasses import dataclass, field

from pikepdf import Array, Dictionary, Name, Pdf, String

from ..utils import iter_page_annotations, read_text
from ..utils import resolve_indirect as _resolve_indirect
from .fields import DEFAULT_APPEARANCE, create_field

logger = logging.getLogger(__name__)

# Prefix some converters put in front of every field name
CONVERTER_NAME_PREFIX = "u:"


@dataclass
class ReconcileResult:
    """Outcome of a widget reconciliation pass.

    Attributes:
        fields_created: Number of fields synthesized and appended to
            /AcroForm/Fields.
        widgets_attached: Number of widgets linked to a field.
        names_renamed: ``(partial_name, unique_name)`` pairs for widgets
            whose name collided with an existing field.
    """

    fields_created: int = 0
    widgets_attached: int = 0
    names_renamed: list[tuple[str, str]] = field(default_factory=list)


def partial_name_of(full_name: str) -> str:
    """Returns the last dot-separated segment of a full field name, trimmed."""
    return full_name.rsplit(".", 1)[-1].strip()


def unique_partial_name(base: str, taken) -> str:
    """Returns base, or the first of base_2, base_3, ... not in taken."""
    if base not in taken:
        return base
    n = 2
    while f"{base}_{n}" in taken:
        n += 1
    return f"{base}_{n}"


def normalize_full_name(full_name: str) -> str:
    """Trims a widget's full name and strips the converter's "u:" prefix."""
    full_name = full_name.strip()
    if full_name.startswith(CONVERTER_NAME_PREFIX):
        full_name = full_name[len(CONVERTER_NAME_PREFIX) :]
    return full_name


def _is_widget(annot: Dictionary) -> bool:
    """Returns True for widget annotations.

    An annotation without /Subtype but with a field type is a widget whose
    converter forgot the subtype.
    """
    subtype = annot.get("/Subtype")
    if subtype is None:
        return "/FT" in annot
    return str(subtype) == "/Widget"


def _build_name_index(fields: Array) -> dict[str, Dictionary]:
    """Maps the partial names of top-level fields to the field objects."""
    by_name: dict[str, Dictionary] = {}
    for top_field in fields:
        top_field = _resolve_indirect(top_field)
        if not isinstance(top_field, Dictionary):
            continue
        name = read_text(top_field.get("/T"))
        # Later fields with the same name replace earlier ones
        if name is not None:
            by_name[name] = top_field
    return by_name


def reconcile_widgets(pdf: Pdf, acroform: Dictionary) -> ReconcileResult:
    """Links orphan field widgets to fields of the AcroForm.

    Pages are processed in document order and annotations in /Annots
    order. For each widget with /FT and /T but no /Parent, the partial
    name (last segment of /T, "u:" prefix stripped) is made unique among
    top-level fields by appending ``_2``, ``_3``, ...; a field with that
    name is reused or created, the widget is appended to its /Kids and
    its /Parent is set.

    Args:
        pdf: Opened pikepdf PDF object (modified in place).
        acroform: The AcroForm dictionary; must contain a /Fields array.

    Returns:
        ReconcileResult with counts of created fields and attached widgets.
    """
    result = ReconcileResult()
    fields = _resolve_indirect(acroform.Fields)
    by_name = _build_name_index(fields)

    for _page_num, annots, index, annot in iter_page_annotations(pdf):
        if not _is_widget(annot):
            continue
        annot.Subtype = Name.Widget

        field_type = annot.get("/FT")
        raw_name = annot.get("/T")
        if field_type is None or raw_name is None:
            continue

        if annot.get("/Parent") is not None:
            continue

        full_name = read_text(raw_name)
        if full_name is None or not full_name.strip():
            continue
        full_name = normalize_full_name(full_name)

        # May be empty ("form1.", "u:"); such widgets still get a field
        partial_name = partial_name_of(full_name)

        unique_name = unique_partial_name(partial_name, by_name)
        if unique_name != partial_name:
            result.names_renamed.append((partial_name, unique_name))
            logger.debug(
                "Field name '%s' already taken, using '%s'",
                partial_name,
                unique_name,
            )

        target = by_name.get(unique_name)
        if target is None:
            target = create_field(pdf, field_type, unique_name)
            target.DA = String(DEFAULT_APPEARANCE)
            fields.append(target)
            by_name[unique_name] = target
            result.fields_created += 1

        # /Kids and /Parent must point at the same object
        if not annot.is_indirect:
            annot = pdf.make_indirect(annot)
            annots[index] = annot

        kids = target.get("/Kids")
        if kids is None:
            target.Kids = Array()
        _resolve_indirect(target.Kids).append(annot)
        annot.Parent = target
        result.widgets_attached += 1

    if result.widgets_attached > 0:
        logger.info(
            "%d orphan widget(s) attached, %d field(s) created",
            result.widgets_attached,
            result.fields_created,
        )
    return result
