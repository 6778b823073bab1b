# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Pytest fixtures for the xfa2acro test suite."""

from io import BytesIO
from pathlib import Path

import pikepdf
import pytest
from pikepdf import Array, Dictionary, Name, Pdf, String

# -- Global PDF tracker --

_tracked_pdfs: list[Pdf] = []


@pytest.fixture(autouse=True)
def _auto_close_pdfs():
    """Close all tracked PDF objects after each test."""
    yield
    for pdf in reversed(_tracked_pdfs):
        try:
            pdf.close()
        except Exception:
            pass
    _tracked_pdfs.clear()


@pytest.fixture(autouse=True)
def _no_remote_credentials(monkeypatch):
    """Keep real service credentials from leaking into tests."""
    monkeypatch.delenv("ASPOSE_CLIENT_ID", raising=False)
    monkeypatch.delenv("ASPOSE_CLIENT_SECRET", raising=False)
    monkeypatch.delenv("ASPOSE_BASE_URL", raising=False)


def new_pdf(**kwargs) -> Pdf:
    """Create a tracked Pdf (auto-closed after test)."""
    pdf = Pdf.new(**kwargs)
    _tracked_pdfs.append(pdf)
    return pdf


def open_pdf(source, **kwargs) -> Pdf:
    """Open a tracked Pdf (auto-closed after test)."""
    pdf = Pdf.open(source, **kwargs)
    _tracked_pdfs.append(pdf)
    return pdf


# -- Shared test helpers (not fixtures) --


def make_pdf_with_page(num_pages: int = 1) -> Pdf:
    """Create a minimal PDF with blank pages (auto-tracked)."""
    pdf = new_pdf()
    for _ in range(num_pages):
        page = pikepdf.Page(
            Dictionary(Type=Name.Page, MediaBox=Array([0, 0, 612, 792]))
        )
        pdf.pages.append(page)
    return pdf


@pytest.fixture(name="make_pdf_with_page")
def _make_pdf_with_page_fixture():
    return make_pdf_with_page


def add_widget(
    pdf: Pdf,
    page_index: int = 0,
    rect=(100, 600, 250, 618),
    **entries,
) -> Dictionary:
    """Append an indirect widget annotation to a page.

    Keyword arguments become dictionary entries (e.g. ``FT=Name.Tx``,
    ``T=String("Field1")``). Pass ``Subtype=None`` to omit the subtype.

    Returns:
        The indirect widget dictionary.
    """
    annot = Dictionary(Type=Name.Annot, Rect=Array(list(rect)))
    subtype = entries.pop("Subtype", Name.Widget)
    if subtype is not None:
        annot.Subtype = subtype
    for key, value in entries.items():
        annot["/" + key] = value
    annot = pdf.make_indirect(annot)

    page = pdf.pages[page_index]
    if "/Annots" not in page.obj:
        page.obj.Annots = Array()
    page.obj.Annots.append(annot)
    return annot


def add_empty_acroform(pdf: Pdf) -> Dictionary:
    """Attach an empty AcroForm to the catalog."""
    pdf.Root.AcroForm = pdf.make_indirect(Dictionary(Fields=Array()))
    return pdf.Root.AcroForm


def add_wired_text_field(pdf: Pdf, name: str, page_index: int = 0) -> Dictionary:
    """Create a text field with one properly linked widget.

    Returns:
        The indirect field dictionary.
    """
    if "/AcroForm" not in pdf.Root:
        add_empty_acroform(pdf)
    field = pdf.make_indirect(Dictionary(FT=Name.Tx, T=String(name)))
    widget = add_widget(pdf, page_index, rect=(100, 560, 250, 578))
    widget.Parent = field
    field.Kids = Array([widget])
    pdf.Root.AcroForm.Fields.append(field)
    return field


def set_xfa(pdf: Pdf, packets) -> None:
    """Set /AcroForm/XFA.

    Args:
        packets: Either raw bytes (single-stream XFA) or a list of
            ``(name, bytes)`` pairs.
    """
    if "/AcroForm" not in pdf.Root:
        add_empty_acroform(pdf)
    if isinstance(packets, bytes):
        pdf.Root.AcroForm.XFA = pdf.make_stream(packets)
        return
    items = []
    for name, data in packets:
        items.append(String(name))
        items.append(pdf.make_stream(data))
    pdf.Root.AcroForm.XFA = Array(items)


def xfa_packet(pdf: Pdf, name: str) -> bytes:
    """Return the decoded bytes of a named XFA packet."""
    xfa = pdf.Root.AcroForm.XFA
    if isinstance(xfa, pikepdf.Stream):
        return bytes(xfa.read_bytes())
    for i in range(0, len(xfa) - 1, 2):
        if str(xfa[i]) == name:
            return bytes(xfa[i + 1].read_bytes())
    raise KeyError(name)


def resolve(obj: object) -> object:
    """Safely resolve an indirect reference."""
    try:
        return obj.get_object()
    except (AttributeError, TypeError, ValueError):
        return obj


def save_and_reopen(pdf: Pdf) -> Pdf:
    """Save a PDF to bytes and reopen it (auto-tracked)."""
    buf = BytesIO()
    pdf.save(buf)
    pdf.close()
    buf.seek(0)
    return open_pdf(buf)


@pytest.fixture(name="save_and_reopen")
def _save_and_reopen_fixture():
    return save_and_reopen


# -- Fixtures --


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Temporary directory for tests.

    Args:
        tmp_path: Pytest-provided temporary directory.

    Returns:
        Path to the temporary directory.
    """
    return tmp_path


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Minimal valid PDF as bytes.

    Returns:
        PDF data as bytes.
    """
    pdf = make_pdf_with_page()
    buffer = BytesIO()
    pdf.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def sample_pdf(tmp_dir: Path, sample_pdf_bytes: bytes) -> Path:
    """Minimal valid PDF on disk.

    Args:
        tmp_dir: Temporary directory.
        sample_pdf_bytes: PDF data as bytes.

    Returns:
        Path to the PDF file.
    """
    pdf_path = tmp_dir / "sample.pdf"
    pdf_path.write_bytes(sample_pdf_bytes)
    return pdf_path


@pytest.fixture
def orphan_text_pdf(tmp_dir: Path) -> Path:
    """PDF with an empty AcroForm and one orphan text widget "Field1".

    Returns:
        Path to the PDF file.
    """
    pdf = make_pdf_with_page()
    add_empty_acroform(pdf)
    add_widget(pdf, FT=Name.Tx, T=String("Field1"))

    pdf_path = tmp_dir / "orphan-tx.pdf"
    pdf.save(pdf_path)
    return pdf_path


@pytest.fixture
def scripted_form_pdf(tmp_dir: Path) -> Path:
    """PDF with scripts everywhere and an orphan widget.

    Contains a JavaScript OpenAction, document /AA, a named JavaScript
    tree, page /AA, widget /A and /AA, and an XFA template with an event
    and a JavaScript script.

    Returns:
        Path to the PDF file.
    """
    pdf = make_pdf_with_page()
    pdf.Root.OpenAction = Dictionary(S=Name.JavaScript, JS="app.alert('open');")
    pdf.Root.AA = Dictionary(WC=Dictionary(S=Name.JavaScript, JS="close();"))
    pdf.Root.Names = Dictionary(
        JavaScript=Dictionary(
            Names=Array(["init", Dictionary(S=Name.JavaScript, JS="init();")])
        )
    )
    pdf.pages[0].obj.AA = Dictionary(O=Dictionary(S=Name.JavaScript, JS="o();"))
    add_widget(
        pdf,
        FT=Name.Tx,
        T=String("form1.page1.Name"),
        A=Dictionary(S=Name.JavaScript, JS="click();"),
        AA=Dictionary(K=Dictionary(S=Name.JavaScript, JS="key();")),
    )
    set_xfa(
        pdf,
        [
            ("preamble", b'<xdp:xdp xmlns:xdp="http://ns.adobe.com/xdp/">'),
            (
                "template",
                b'<template><subform name="form1">'
                b'<field name="Name"/>'
                b'<event activity="initialize"><script>x()</script></event>'
                b'<script contentType="application/x-javascript">y()</script>'
                b"</subform></template>",
            ),
            ("postamble", b"</xdp:xdp>"),
        ],
    )

    pdf_path = tmp_dir / "scripted.pdf"
    pdf.save(pdf_path)
    return pdf_path
