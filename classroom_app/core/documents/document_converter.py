"""Conversion of uploaded office/PDF files into text or HTML.

Text extraction feeds the AI helpers (summary, translation); HTML previews
let students read a file without downloading it.
"""

from __future__ import annotations

import base64
import binascii
import html
from io import BytesIO
import logging

import mammoth
from openpyxl import load_workbook
from pypdf import PdfReader

from classroom_app.core.errors import ConversionError, UnsupportedDocumentError
from classroom_app.core.markdown_renderer import renderer

logger = logging.getLogger(__name__)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PPTX_MIME = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
PDF_MIME = "application/pdf"
TEXT_MIMES = ("text/plain", "text/markdown")


def decode_file_data(file_data: str) -> bytes:
    """Decode a ``data:<mime>;base64,<payload>`` URL or bare base64 string."""
    payload = file_data.split(",", 1)[1] if file_data.startswith("data:") else file_data
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ConversionError("Stored file data is not valid base64.") from exc


def encode_file_data(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def extract_text(data: bytes, mime_type: str) -> str:
    """Return the plain text of a document.

    Raises:
        UnsupportedDocumentError: presentations and unknown types.
        ConversionError: the file could not be parsed.
    """
    if mime_type == DOCX_MIME:
        return _convert(lambda: mammoth.extract_raw_text(BytesIO(data)).value, mime_type)
    if mime_type == XLSX_MIME:
        return _convert(lambda: "".join(" \t ".join(row) + "\n" for _, row in _sheet_rows(data)), mime_type)
    if mime_type == PDF_MIME:
        return _convert(lambda: "\n".join(text for _, text in _pdf_pages(data)), mime_type)
    if mime_type in TEXT_MIMES:
        return _convert(lambda: data.decode("utf-8"), mime_type)
    raise UnsupportedDocumentError(f"Text extraction is not supported for {mime_type}.")


def render_preview(data: bytes, mime_type: str) -> str:
    """Return an HTML fragment previewing the document."""
    if mime_type == DOCX_MIME:
        return _convert(lambda: mammoth.convert_to_html(BytesIO(data)).value, mime_type)
    if mime_type == XLSX_MIME:
        return _convert(lambda: _spreadsheet_html(data), mime_type)
    if mime_type == PDF_MIME:
        return _convert(lambda: _pdf_html(data), mime_type)
    if mime_type in TEXT_MIMES:
        return _convert(lambda: renderer.render_fragment(data.decode("utf-8")), mime_type)
    raise UnsupportedDocumentError(f"Preview is not supported for {mime_type}.")


def _convert(action, mime_type: str) -> str:
    try:
        return action()
    except Exception as exc:
        logger.error("Failed to convert %s document: %s", mime_type, exc)
        raise ConversionError(f"Could not read the {mime_type} document.") from exc


def _sheet_rows(data: bytes):
    workbook = load_workbook(BytesIO(data), read_only=True, data_only=True)
    try:
        for sheet in workbook.worksheets:
            for row in sheet.iter_rows(values_only=True):
                yield sheet.title, ["" if cell is None else str(cell) for cell in row]
    finally:
        workbook.close()


def _spreadsheet_html(data: bytes) -> str:
    sections: dict[str, list[str]] = {}
    for title, row in _sheet_rows(data):
        cells = "".join(f"<td>{html.escape(cell)}</td>" for cell in row)
        sections.setdefault(title, []).append(f"<tr>{cells}</tr>")
    return "".join(
        f"<h3>{html.escape(title)}</h3><table>{''.join(rows)}</table>" for title, rows in sections.items()
    )


def _pdf_pages(data: bytes):
    reader = PdfReader(BytesIO(data))
    for number, page in enumerate(reader.pages, start=1):
        yield number, page.extract_text() or ""


def _pdf_html(data: bytes) -> str:
    parts = []
    for number, text in _pdf_pages(data):
        paragraphs = "".join(f"<p>{html.escape(line)}</p>" for line in text.splitlines() if line.strip())
        parts.append(f'<section class="page" data-page="{number}"><h3>Page {number}</h3>{paragraphs}</section>')
    return "".join(parts)
