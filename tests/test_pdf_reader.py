"""Tests for the PDF text reader."""

from io import BytesIO

import pytest
from PyPDF2 import PdfWriter

from revolut_ledger.exceptions import DocumentReadError, EncryptedDocumentError
from revolut_ledger.pdf_reader import PdfTextReader


def _blank_pdf(password=None) -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    if password:
        writer.encrypt(password)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class TestPdfTextReader:
    """Tests for PdfTextReader."""

    def test_blank_page_has_no_lines(self):
        assert PdfTextReader().read_lines(_blank_pdf()) == []

    def test_accepts_stream(self):
        assert PdfTextReader().read_lines(BytesIO(_blank_pdf())) == []

    def test_encrypted_document(self):
        with pytest.raises(EncryptedDocumentError) as exc_info:
            PdfTextReader().read_lines(_blank_pdf(password="secret"), source="locked.pdf")

        assert exc_info.value.source == "locked.pdf"

    def test_not_a_pdf(self):
        with pytest.raises(DocumentReadError):
            PdfTextReader().read_lines(b"this is not a pdf document", source="notes.txt")

    def test_missing_file(self, tmp_path):
        missing = tmp_path / "missing.pdf"

        with pytest.raises(DocumentReadError) as exc_info:
            PdfTextReader().read_file(missing)

        assert exc_info.value.source == str(missing)
