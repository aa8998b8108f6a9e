"""
Service for reading device displays from photos.

The OCR engine (Tesseract via pytesseract) is a black box that turns an
image into raw text; value extraction happens in services.ocr_extractor.
"""
import io
import logging
from pathlib import Path
from typing import Tuple

import pytesseract
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from core.config import settings
from core.exceptions import FileTooLargeError, InvalidFileTypeError, RecognitionError
from models.reading import ReadingKind
from services.ocr_extractor import ExtractionResult, extract_reading_values

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/bmp", "image/gif"}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif"}


class RecognitionService:
    """Run OCR on uploaded photos and extract reading values."""

    def __init__(
        self,
        languages: str = settings.guardian_ocr_languages,
        fallback_language: str = settings.guardian_ocr_fallback_language,
        max_size: int = settings.guardian_upload_max_size,
    ):
        """
        Initialize the recognition service.

        Args:
            languages: Tesseract language packs tried first ("eng+chi_tra").
            fallback_language: Language used when the primary packs are missing.
            max_size: Maximum accepted image size in bytes.
        """
        self.languages = languages
        self.fallback_language = fallback_language
        self.max_size = max_size

    def validate_upload(self, file: UploadFile) -> str:
        """
        Check the declared type of an upload.

        Returns:
            str: The content type.

        Raises:
            InvalidFileTypeError: If the file is not a supported image.
        """
        content_type = (file.content_type or "").lower()
        extension = Path(file.filename or "").suffix.lower()
        if content_type not in ALLOWED_CONTENT_TYPES and extension not in ALLOWED_EXTENSIONS:
            raise InvalidFileTypeError(
                f"Unsupported file type '{content_type or extension or 'unknown'}'",
                allowed=sorted(ALLOWED_CONTENT_TYPES),
            )
        return content_type

    def _image_to_string(self, image: Image.Image, lang: str) -> str:
        return pytesseract.image_to_string(image.convert("RGB"), lang=lang)

    def recognize(self, image_bytes: bytes) -> str:
        """
        Read all text visible in an image.

        Tries the configured languages first and the fallback language when
        those language packs are not installed.

        Raises:
            FileTooLargeError: If the image exceeds the size limit.
            RecognitionError: If the image cannot be decoded or OCR fails.
        """
        if len(image_bytes) > self.max_size:
            raise FileTooLargeError(
                f"File size ({len(image_bytes)} bytes) exceeds maximum allowed ({self.max_size} bytes)",
                max_size=self.max_size,
            )

        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Cannot decode uploaded image: {e}")
            raise RecognitionError("Cannot read the image, upload a JPEG or PNG photo")

        try:
            return self._image_to_string(image, self.languages)
        except pytesseract.TesseractNotFoundError as e:
            logger.error("Tesseract OCR is not installed or not on PATH")
            raise RecognitionError("Recognition engine is not available") from e
        except pytesseract.TesseractError as e:
            if self.fallback_language == self.languages:
                logger.error(f"Tesseract OCR failed: {e}")
                raise RecognitionError() from e
            logger.warning(
                f"OCR with '{self.languages}' failed, retrying with '{self.fallback_language}'",
                extra={"error": str(e)}
            )

        try:
            return self._image_to_string(image, self.fallback_language)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            logger.error(f"Tesseract OCR failed: {e}")
            raise RecognitionError() from e

    def recognize_reading(self, image_bytes: bytes, kind: ReadingKind) -> Tuple[str, ExtractionResult]:
        """Recognize an image and extract the values of a reading kind."""
        raw_text = self.recognize(image_bytes)
        result = extract_reading_values(raw_text, kind)
        logger.info(
            "Recognition finished",
            extra={"kind": kind.value, "outcome": result.outcome.value, "chars": len(raw_text)}
        )
        return raw_text, result
