"""Text extraction for uploaded documents."""

import io
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS = "application/vnd.ms-excel"
PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
PPT = "application/vnd.ms-powerpoint"

# Rows of sheet data kept in file metadata
SHEET_PREVIEW_ROWS = 100

SUPPORTED_TYPES_MESSAGE = "Please upload PDF, Word, Excel, or PowerPoint documents."


class UnsupportedFileType(Exception):
    """Raised when no extractor handles the given file."""


@dataclass
class ExtractedFile:
    """Result of extracting text from a document."""

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def word_count(self) -> int:
        return len(self.text.split())


class DocumentExtractor(ABC):
    """Abstract base class for document extractors."""

    @abstractmethod
    def extract(self, content: bytes, filename: str) -> ExtractedFile:
        """Extract text and structural metadata."""
        pass

    @staticmethod
    def clean_text(text: str) -> str:
        """Collapse whitespace and drop control characters."""
        text = re.sub(r"\s+", " ", text)
        text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]", "", text)
        return text.strip()


class PDFExtractor(DocumentExtractor):
    """Extractor for PDF files using pypdf."""

    def extract(self, content: bytes, filename: str) -> ExtractedFile:
        from pypdf import PdfReader

        reader = PdfReader(io.BytesIO(content))
        texts = [page.extract_text() or "" for page in reader.pages]

        info = {}
        if reader.metadata:
            info = {
                "title": reader.metadata.get("/Title", ""),
                "author": reader.metadata.get("/Author", ""),
                "subject": reader.metadata.get("/Subject", ""),
            }

        return ExtractedFile(
            text="\n".join(t for t in texts if t.strip()),
            metadata={"type": "pdf", "pages": len(reader.pages), "info": info},
        )


class DOCXExtractor(DocumentExtractor):
    """Extractor for DOCX files using python-docx."""

    def extract(self, content: bytes, filename: str) -> ExtractedFile:
        from docx import Document

        doc = Document(io.BytesIO(content))
        text = "\n".join(p.text for p in doc.paragraphs if p.text.strip())

        return ExtractedFile(
            text=text,
            metadata={"type": "document", "wordCount": len(text.split())},
        )


class XLSXExtractor(DocumentExtractor):
    """Extractor for Excel workbooks using openpyxl.

    Each sheet becomes a ``--- Sheet N: name ---`` block followed by
    ``Row i: a | b | c`` lines, empty rows skipped.
    """

    def extract(self, content: bytes, filename: str) -> ExtractedFile:
        from openpyxl import load_workbook

        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        parts: list[str] = []
        sheets: list[dict[str, Any]] = []

        try:
            for index, worksheet in enumerate(workbook.worksheets, start=1):
                rows = [
                    ["" if value is None else _cell_str(value) for value in row]
                    for row in worksheet.iter_rows(values_only=True)
                ]
                # Trailing empty cells are padding in read-only mode
                rows = [_rstrip_row(row) for row in rows]

                lines = [f"--- Sheet {index}: {worksheet.title} ---"]
                for row_index, row in enumerate(rows, start=1):
                    if row:
                        lines.append(f"Row {row_index}: {' | '.join(row)}")
                parts.append("\n".join(lines))

                sheets.append({
                    "name": worksheet.title,
                    "rowCount": len(rows),
                    "columnCount": max((len(r) for r in rows), default=0),
                    "data": rows[:SHEET_PREVIEW_ROWS],
                })
        finally:
            workbook.close()

        return ExtractedFile(
            text="\n".join(parts),
            metadata={
                "type": "spreadsheet",
                "sheetCount": len(sheets),
                "sheetNames": [s["name"] for s in sheets],
                "sheets": sheets,
            },
        )


class PPTXExtractor(DocumentExtractor):
    """Extractor for PPTX files using python-pptx."""

    def extract(self, content: bytes, filename: str) -> ExtractedFile:
        from pptx import Presentation

        prs = Presentation(io.BytesIO(content))
        parts: list[str] = []
        slides: list[dict[str, Any]] = []

        for i, slide in enumerate(prs.slides, start=1):
            texts = [
                shape.text
                for shape in slide.shapes
                if getattr(shape, "has_text_frame", False) and shape.text
            ]
            slide_text = self.clean_text(" ".join(texts))
            if slide_text:
                slides.append({"slideNumber": i, "content": slide_text})
                parts.append(f"--- Slide {i} ---\n{slide_text}")

        return ExtractedFile(
            text="\n".join(parts),
            metadata={
                "type": "presentation",
                "slideCount": len(prs.slides),
                "slides": slides,
            },
        )


class LegacyOfficeExtractor(DocumentExtractor):
    """Placeholder for binary .ppt/.xls files, which no parser here reads."""

    def __init__(self, kind: str, modern_extension: str) -> None:
        self.kind = kind
        self.modern_extension = modern_extension

    def extract(self, content: bytes, filename: str) -> ExtractedFile:
        label = "PowerPoint" if self.kind == "presentation" else "Excel"
        return ExtractedFile(
            text=(
                f"[{label} file detected - please use {self.modern_extension} "
                "format for full text extraction]"
            ),
            metadata={"type": self.kind, "legacy": True},
        )


def _cell_str(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _rstrip_row(row: list[str]) -> list[str]:
    end = len(row)
    while end and row[end - 1] == "":
        end -= 1
    return row[:end]


# Extension fallback mapping
EXTENSION_TO_CONTENT_TYPE: dict[str, str] = {
    ".pdf": PDF,
    ".docx": DOCX,
    ".xlsx": XLSX,
    ".xls": XLS,
    ".pptx": PPTX,
    ".ppt": PPT,
}


def resolve_content_type(content_type: str | None, filename: str) -> str:
    """Return the MIME type used for extraction.

    Generic or missing types are inferred from the extension.
    """
    ext = Path(filename).suffix.lower()
    if content_type in EXTENSION_TO_CONTENT_TYPE.values():
        # Browsers report .ppt/.xls for some OOXML uploads
        if content_type in (PPT, XLS) and ext in (".pptx", ".xlsx"):
            return EXTENSION_TO_CONTENT_TYPE[ext]
        return content_type
    return EXTENSION_TO_CONTENT_TYPE.get(ext, content_type or "application/octet-stream")


def get_extractor(content_type: str | None, filename: str) -> DocumentExtractor:
    """Get the extractor for a file.

    Raises:
        UnsupportedFileType: images and unknown formats
    """
    if content_type and content_type.startswith("image/"):
        raise UnsupportedFileType(f"Image files are not supported. {SUPPORTED_TYPES_MESSAGE}")

    resolved = resolve_content_type(content_type, filename)
    if resolved == PDF:
        return PDFExtractor()
    if resolved == DOCX:
        return DOCXExtractor()
    if resolved == XLSX:
        return XLSXExtractor()
    if resolved == XLS:
        return LegacyOfficeExtractor("spreadsheet", ".xlsx")
    if resolved == PPTX:
        return PPTXExtractor()
    if resolved == PPT:
        return LegacyOfficeExtractor("presentation", ".pptx")

    raise UnsupportedFileType(f"Unsupported file type: {content_type}. {SUPPORTED_TYPES_MESSAGE}")


def extract_document(content: bytes, filename: str, content_type: str | None) -> ExtractedFile:
    """Extract text using the appropriate extractor (sync)."""
    extractor = get_extractor(content_type, filename)
    result = extractor.extract(content, filename)
    logger.info(
        "Extracted %d chars from %s (%s)",
        len(result.text),
        filename,
        type(extractor).__name__,
    )
    return result


def get_file_category(content_type: str, filename: str = "") -> str:
    """Coarse category used in prompts and listings."""
    if content_type == PDF:
        return "pdf"
    if "wordprocessing" in content_type or content_type == "application/msword":
        return "document"
    if "spreadsheet" in content_type or content_type == XLS:
        return "spreadsheet"
    if "presentation" in content_type or content_type == PPT:
        return "presentation"
    if content_type.startswith("image/"):
        return "image"

    ext = Path(filename).suffix.lower()
    if ext in (".xlsx", ".xls"):
        return "spreadsheet"
    if ext in (".pptx", ".ppt"):
        return "presentation"
    return "document"
