"""
exceptions.py

Error types raised by the OCR pipeline.

The API layer maps them to HTTP responses:
- ValidationError -> 400 (caller sent bad input)
- RecognitionError -> 500 (image could not be read)

ExtractionDegradation never reaches the API layer. The extractor
raises it internally and turns it into an all-empty result.
"""

from typing import Optional


class ValidationError(ValueError):
    """Caller input is malformed (missing image, bad field list)."""

    def __init__(self, message: str, request_id: Optional[str] = None, example: Optional[str] = None):
        super().__init__(message)
        self.request_id = request_id
        self.example = example


class RecognitionError(RuntimeError):
    """OCR backend failed to initialize or to process the image."""

    def __init__(self, message: str, request_id: Optional[str] = None):
        super().__init__(message)
        self.request_id = request_id


class ExtractionDegradation(RuntimeError):
    """Text-understanding service failed or replied with unusable output."""
