# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Custom exceptions for xfa2acro."""


class FormRepairError(Exception):
    """Base exception for all xfa2acro errors."""


class RepairError(FormRepairError):
    """Error while loading, repairing or saving a document."""


class RemoteConversionError(FormRepairError):
    """Remote XFA to AcroForm conversion failed."""


class XfaPacketError(FormRepairError):
    """An XFA packet could not be parsed or serialized."""
