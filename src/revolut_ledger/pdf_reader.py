"""
PDF text reader for Revolut statements.

Turns a statement PDF into the ordered text lines the statement parsers
consume, using PyPDF2 page text extraction.
"""

from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Optional, Union

import structlog
from PyPDF2 import PdfReader
from PyPDF2.errors import FileNotDecryptedError, PdfReadError

from .exceptions import DocumentReadError, EncryptedDocumentError

logger = structlog.get_logger()


class PdfTextReader:
    """
    Reads statement PDFs into text lines.

    Encrypted documents are rejected rather than decrypted; statements
    downloaded from the broker app are never password protected.
    """

    def read_lines(self, stream: Union[BinaryIO, bytes], source: Optional[str] = None) -> list[str]:
        """
        Extract the text lines of every page, in reading order.

        Args:
            stream: Binary stream or raw bytes of a PDF document
            source: Identifier used in logs and errors

        Returns:
            Lines of all pages with line endings removed

        Raises:
            EncryptedDocumentError: If the document is encrypted
            DocumentReadError: If the document is not a readable PDF
        """
        if isinstance(stream, (bytes, bytearray)):
            stream = BytesIO(stream)

        try:
            reader = PdfReader(stream)
        except PdfReadError as e:
            raise DocumentReadError(f"Failed to read PDF: {e}", source=source) from e

        if reader.is_encrypted:
            raise EncryptedDocumentError("Cannot read encrypted PDF", source=source)

        lines: list[str] = []
        try:
            for page in reader.pages:
                lines.extend((page.extract_text() or "").splitlines())
        except FileNotDecryptedError as e:
            raise EncryptedDocumentError("Cannot read encrypted PDF", source=source) from e
        except (PdfReadError, ValueError, KeyError) as e:
            raise DocumentReadError(f"Failed to extract PDF text: {e}", source=source) from e

        logger.debug("pdf_read", source=source, pages=len(reader.pages), lines=len(lines))
        return lines

    def read_file(self, file_path: Union[str, Path]) -> list[str]:
        """
        Read the text lines of a PDF file.

        Raises:
            DocumentReadError: If the file is missing or unreadable
        """
        file_path = Path(file_path)
        try:
            data = file_path.read_bytes()
        except OSError as e:
            raise DocumentReadError(f"Failed to open PDF: {e}", source=str(file_path)) from e
        return self.read_lines(data, source=str(file_path))
