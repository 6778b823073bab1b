# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""AcroForm repair: defaults, field synthesis, widget reconciliation."""

from .acroform import ensure_acroform, ensure_acroform_defaults
from .fields import (
    DEFAULT_APPEARANCE,
    FIELD_KIND_BY_TYPE,
    FieldKind,
    create_field,
    field_kind,
)
from .listing import list_terminal_fields
from .reconcile import ReconcileResult, reconcile_widgets

__all__ = [
    "DEFAULT_APPEARANCE",
    "FIELD_KIND_BY_TYPE",
    "FieldKind",
    "ReconcileResult",
    "create_field",
    "ensure_acroform",
    "ensure_acroform_defaults",
    "field_kind",
    "list_terminal_fields",
    "reconcile_widgets",
]
