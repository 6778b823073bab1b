# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""AcroForm creation and form-wide defaults."""

import logging

from pikepdf import Array, Dictionary, Name, Pdf, String

from ..utils import resolve_indirect as _resolve_indirect
from .fields import DEFAULT_APPEARANCE

logger = logging.getLogger(__name__)

HELVETICA_ALIAS = "/Helv"


def ensure_acroform(pdf: Pdf) -> tuple[Dictionary, bool]:
    """Returns the document's AcroForm, creating an empty one if missing.

    Also adds an empty /Fields array to an AcroForm that lacks one.

    Args:
        pdf: Opened pikepdf PDF object (modified in place).

    Returns:
        Tuple of (AcroForm dictionary, True if it was created).
    """
    acroform = pdf.Root.get("/AcroForm")
    if acroform is not None:
        acroform = _resolve_indirect(acroform)
    if not isinstance(acroform, Dictionary):
        pdf.Root.AcroForm = pdf.make_indirect(Dictionary(Fields=Array()))
        logger.info("AcroForm created")
        return pdf.Root.AcroForm, True

    if not isinstance(_resolve_indirect(acroform.get("/Fields")), Array):
        acroform.Fields = Array()
        logger.debug("Empty /Fields array added to AcroForm")
    return acroform, False


def ensure_acroform_defaults(pdf: Pdf, acroform: Dictionary) -> None:
    """Ensures default resources and default appearance on the AcroForm.

    - /DR is created when missing.
    - A Standard-14 Helvetica font is registered as /DR/Font/Helv unless an
      entry of that name already exists. Failures here are logged and
      ignored; viewers substitute a font for a missing /Helv.
    - /DA is set to ``/Helv 0 Tf 0 g`` when missing or blank.

    Args:
        pdf: Opened pikepdf PDF object (modified in place).
        acroform: The AcroForm dictionary.
    """
    dr = acroform.get("/DR")
    if dr is None or not isinstance(_resolve_indirect(dr), Dictionary):
        acroform.DR = Dictionary()
        logger.debug("Default resources (/DR) added to AcroForm")

    try:
        _register_helvetica(pdf, _resolve_indirect(acroform.DR))
    except Exception as e:
        logger.debug("Could not register Helvetica in /DR: %s", e)

    da = acroform.get("/DA")
    if da is None or not str(da).strip():
        acroform.DA = String(DEFAULT_APPEARANCE)
        logger.debug("Default appearance (/DA) set on AcroForm")


def _register_helvetica(pdf: Pdf, dr: Dictionary) -> None:
    fonts = dr.get("/Font")
    if fonts is None:
        dr.Font = Dictionary()
        fonts = dr.Font
    fonts = _resolve_indirect(fonts)

    if HELVETICA_ALIAS in fonts:
        return

    fonts[HELVETICA_ALIAS] = pdf.make_indirect(
        Dictionary(
            Type=Name.Font,
            Subtype=Name.Type1,
            BaseFont=Name.Helvetica,
            Encoding=Name.WinAnsiEncoding,
        )
    )
    logger.debug("Helvetica registered as %s in /DR", HELVETICA_ALIAS)
