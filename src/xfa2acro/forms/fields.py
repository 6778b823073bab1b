# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Form field variants and the field factory.

A field type code (/FT) maps onto a closed set of variants. Synthesized
fields are always text, combo box or checkbox fields; an unknown or
missing type code yields a text field.
"""

import enum
import logging
from typing import Any

from pikepdf import Dictionary, Name, Pdf, String

from ..utils import resolve_indirect as _resolve

logger = logging.getLogger(__name__)

# Field flags (ISO 32000-1, Tables 226, 228 and 230)
FIELD_FLAG_RADIO = 1 << 15
FIELD_FLAG_PUSHBUTTON = 1 << 16
FIELD_FLAG_COMBO = 1 << 17

FIELD_TYPE_TEXT = "/Tx"
FIELD_TYPE_CHOICE = "/Ch"
FIELD_TYPE_BUTTON = "/Btn"

# Default appearance selecting the AcroForm's Helvetica alias, auto size,
# black fill
DEFAULT_APPEARANCE = "/Helv 0 Tf 0 g"


class FieldKind(enum.Enum):
    """Field variants."""

    TEXT = "text"
    CHOICE = "choice"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    PUSHBUTTON = "pushbutton"
    SIGNATURE = "signature"
    NON_TERMINAL = "non-terminal"


# Variant synthesized for each type code. Buttons always become checkboxes:
# radio grouping would need the /Ff bits of the original field, which an
# orphan widget does not carry reliably.
FIELD_KIND_BY_TYPE: dict[str, FieldKind] = {
    FIELD_TYPE_TEXT: FieldKind.TEXT,
    FIELD_TYPE_CHOICE: FieldKind.CHOICE,
    FIELD_TYPE_BUTTON: FieldKind.CHECKBOX,
}

_TYPE_BY_KIND: dict[FieldKind, str] = {
    FieldKind.TEXT: FIELD_TYPE_TEXT,
    FieldKind.CHOICE: FIELD_TYPE_CHOICE,
    FieldKind.CHECKBOX: FIELD_TYPE_BUTTON,
}


def synthesized_kind(field_type: Any) -> FieldKind:
    """Returns the variant synthesized for a field type code.

    Args:
        field_type: The /FT value (Name, string or None).

    Returns:
        The FieldKind; TEXT for unknown or missing codes.
    """
    if field_type is None:
        return FieldKind.TEXT
    return FIELD_KIND_BY_TYPE.get(str(field_type), FieldKind.TEXT)


def create_field(pdf: Pdf, field_type: Any, partial_name: str) -> Dictionary:
    """Creates a new terminal field for the given type code.

    The field is registered as an indirect object but not attached to
    the AcroForm; the caller decides where it goes.

    Args:
        pdf: Opened pikepdf PDF object that will own the field.
        field_type: The /FT value of the widget (Name, string or None).
        partial_name: Partial field name (must not contain '.').

    Returns:
        The indirect field dictionary with /FT and /T set.
    """
    kind = synthesized_kind(field_type)
    field = Dictionary(
        FT=Name(_TYPE_BY_KIND[kind]),
        T=String(partial_name),
    )
    if kind is FieldKind.CHOICE:
        field.Ff = FIELD_FLAG_COMBO

    logger.debug("Created %s field '%s'", kind.value, partial_name)
    return pdf.make_indirect(field)


def field_kind(field: Dictionary) -> FieldKind:
    """Classifies an existing field dictionary.

    Args:
        field: Field dictionary (may be an indirect reference).

    Returns:
        The FieldKind. Fields without /FT are non-terminal.
    """
    field = _resolve(field)
    field_type = field.get("/FT")
    if field_type is None:
        return FieldKind.NON_TERMINAL

    field_type = str(field_type)
    try:
        flags = int(field.get("/Ff", 0))
    except (TypeError, ValueError):
        flags = 0

    if field_type == FIELD_TYPE_TEXT:
        return FieldKind.TEXT
    if field_type == FIELD_TYPE_CHOICE:
        return FieldKind.CHOICE
    if field_type == FIELD_TYPE_BUTTON:
        if flags & FIELD_FLAG_PUSHBUTTON:
            return FieldKind.PUSHBUTTON
        if flags & FIELD_FLAG_RADIO:
            return FieldKind.RADIO
        return FieldKind.CHECKBOX
    if field_type == "/Sig":
        return FieldKind.SIGNATURE
    return FieldKind.TEXT
