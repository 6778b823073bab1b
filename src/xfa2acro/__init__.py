# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""xfa2acro - Repair converted XFA forms and strip their scripts."""

from importlib.metadata import PackageNotFoundError, version

from .exceptions import (
    FormRepairError,
    RemoteConversionError,
    RepairError,
    XfaPacketError,
)
from .repair import (
    RepairResult,
    list_fields,
    repair_directory,
    repair_document,
    repair_pdf,
)

try:
    __version__ = version("xfa2acro")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "__version__",
    "repair_pdf",
    "repair_document",
    "repair_directory",
    "list_fields",
    "RepairResult",
    "FormRepairError",
    "RepairError",
    "RemoteConversionError",
    "XfaPacketError",
]
