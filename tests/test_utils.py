# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Unit tests for utils.py."""

import logging

from conftest import add_widget
from pikepdf import Array, Dictionary, Name, String

from xfa2acro.exceptions import (
    FormRepairError,
    RemoteConversionError,
    RepairError,
    XfaPacketError,
)
from xfa2acro.utils import (
    LOG_FORMAT,
    iter_page_annotations,
    read_text,
    setup_logging,
)
from xfa2acro.utils import (
    resolve_indirect as _resolve_indirect,
)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_default_level_info(self) -> None:
        """Default log level is INFO."""
        logger = setup_logging()
        assert logger.level == logging.INFO

    def test_verbose_sets_debug(self) -> None:
        """verbose=True sets DEBUG level."""
        logger = setup_logging(verbose=True)
        assert logger.level == logging.DEBUG

    def test_quiet_sets_error(self) -> None:
        """quiet=True sets ERROR level."""
        logger = setup_logging(quiet=True)
        assert logger.level == logging.ERROR

    def test_quiet_takes_precedence(self) -> None:
        """quiet takes precedence over verbose."""
        logger = setup_logging(verbose=True, quiet=True)
        assert logger.level == logging.ERROR

    def test_returns_package_logger(self) -> None:
        """Returns the xfa2acro logger."""
        logger = setup_logging()
        assert logger.name == "xfa2acro"

    def test_has_single_handler(self) -> None:
        """Repeated calls do not stack handlers."""
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_handler_has_formatter(self) -> None:
        """Handler has correct format."""
        logger = setup_logging()
        handler = logger.handlers[0]
        assert handler.formatter is not None
        assert handler.formatter._fmt == LOG_FORMAT


class TestResolveIndirect:
    """Tests for resolve_indirect."""

    def test_returns_original_on_runtime_error(self) -> None:
        """resolve_indirect returns the original object on RuntimeError."""

        class FakeObj:
            def get_object(self):
                raise RuntimeError("get_object failed")

        obj = FakeObj()
        assert _resolve_indirect(obj) is obj

    def test_plain_value(self) -> None:
        """Objects without get_object are returned unchanged."""
        assert _resolve_indirect(42) == 42


class TestReadText:
    """Tests for read_text."""

    def test_string(self) -> None:
        """PDF strings are returned as str."""
        assert read_text(String("form1.Name")) == "form1.Name"

    def test_name(self) -> None:
        """Names are returned without the leading slash."""
        assert read_text(Name.template) == "template"

    def test_other_types(self) -> None:
        """Numbers, None and dictionaries yield None."""
        assert read_text(1) is None
        assert read_text(None) is None
        assert read_text(Dictionary()) is None


class TestIterPageAnnotations:
    """Tests for iter_page_annotations."""

    def test_no_annotations(self, make_pdf_with_page) -> None:
        """Pages without /Annots yield nothing."""
        pdf = make_pdf_with_page(num_pages=2)
        assert list(iter_page_annotations(pdf)) == []

    def test_document_order(self, make_pdf_with_page) -> None:
        """Annotations are yielded by page, then by /Annots position."""
        pdf = make_pdf_with_page(num_pages=2)
        add_widget(pdf, 1, T=String("c"))
        add_widget(pdf, 0, T=String("a"))
        add_widget(pdf, 0, T=String("b"))

        seen = [
            (page_num, index, str(annot.T))
            for page_num, _annots, index, annot in iter_page_annotations(pdf)
        ]
        assert seen == [(1, 0, "a"), (1, 1, "b"), (2, 0, "c")]

    def test_skips_non_dictionaries(self, make_pdf_with_page) -> None:
        """Null and numeric entries in /Annots are skipped."""
        pdf = make_pdf_with_page()
        pdf.pages[0].obj.Annots = Array([None, 3])
        add_widget(pdf, T=String("only"))

        seen = list(iter_page_annotations(pdf))
        assert len(seen) == 1
        assert seen[0][2] == 2

    def test_ignores_non_array_annots(self, make_pdf_with_page) -> None:
        """A malformed /Annots value is ignored."""
        pdf = make_pdf_with_page()
        pdf.pages[0].obj.Annots = Dictionary()
        assert list(iter_page_annotations(pdf)) == []


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_all_derive_from_base(self) -> None:
        """Every package error can be caught as FormRepairError."""
        for exc in (RepairError, RemoteConversionError, XfaPacketError):
            assert issubclass(exc, FormRepairError)
