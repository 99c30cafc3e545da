"""
Resume text extraction and contact field parsing.
"""
import io
import re
import logging
from typing import Iterable, Optional

import docx
from pypdf import PdfReader

from models.schemas import ExtractedInfo
from utils.config import config
from utils.errors import ResumeExtractionError, UnsupportedResumeError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')
PHONE_PATTERN = re.compile(r'(\+?\d{1,3}[\s-]?)?\d{10,12}')
NAME_PATTERN = re.compile(r'^[A-Z][a-z]+(\s+[A-Z][a-z]+)*$')

NAME_SEARCH_LINES = 10


class ResumeTextExtractor:
    """
    Pulls raw text out of PDF and DOCX resumes.
    """

    def __init__(self, max_bytes: Optional[int] = None, mime_types: Optional[Iterable[str]] = None):
        self.max_bytes = max_bytes or config.interview.max_resume_bytes
        self.mime_types = tuple(mime_types or config.interview.resume_mime_types)

    def check(self, data: bytes, mime_type: str):
        """Reject unsupported or oversize files before parsing."""
        if mime_type not in self.mime_types:
            raise UnsupportedResumeError("Please upload a PDF or DOCX file only.")
        if len(data) > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise UnsupportedResumeError(f"File size must be less than {limit_mb}MB.")

    def extract(self, data: bytes, mime_type: str) -> str:
        """
        Extract plain text from a resume.

        Args:
            data: Raw file bytes
            mime_type: Declared content type

        Returns:
            The extracted text
        """
        self.check(data, mime_type)

        try:
            if mime_type == PDF_MIME:
                return self._extract_pdf(data)
            return self._extract_docx(data)
        except Exception as e:
            logger.error(f"Error extracting text from {mime_type}: {e}")
            kind = "PDF" if mime_type == PDF_MIME else "DOCX"
            raise ResumeExtractionError(f"Failed to extract text from {kind}") from e

    @staticmethod
    def _extract_pdf(data: bytes) -> str:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
        return "\n".join(pages).strip()

    @staticmethod
    def _extract_docx(data: bytes) -> str:
        document = docx.Document(io.BytesIO(data))
        return "\n".join(p.text for p in document.paragraphs).strip()


def parse_contact_info(text: str) -> ExtractedInfo:
    """
    Find name, email and phone in resume text.
    Fields that cannot be found are left as None.
    """
    text = text or ""
    lines = [line.strip() for line in text.split("\n") if line.strip()]

    name = None
    for line in lines[:NAME_SEARCH_LINES]:
        if NAME_PATTERN.match(line) and "@" not in line and not PHONE_PATTERN.search(line):
            name = line
            break

    email = EMAIL_PATTERN.search(text)
    phone = PHONE_PATTERN.search(text)

    return ExtractedInfo(
        name=name,
        email=email.group() if email else None,
        phone=phone.group() if phone else None,
        text=text,
    )
