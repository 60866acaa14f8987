"""
pipeline.py

Request Orchestrator: runs one POST /ocr request end to end.

Flow (one request, no state shared with other requests):
    validate -> recognize (OCR session) -> extract (LLM) -> assemble envelope

Errors:
- ValidationError: empty image or bad field list (HTTP 400)
- RecognitionError: OCR failed (HTTP 500)
- extraction never fails; it may return empty fields
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Optional, Sequence

from doc_extractor.exceptions import ValidationError
from doc_extractor.schemas.ocr import ResponseEnvelope
from doc_extractor.services.extractor import FieldExtractor
from doc_extractor.services.fields import resolve_field_spec
from doc_extractor.services.ocr import RecognitionSessionManager

# Setup logging
logger = logging.getLogger(__name__)


def new_request_id() -> str:
    """16 hex chars (64 random bits) per request."""
    return secrets.token_hex(8)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class OCRPipeline:
    """
    Sequences Session Manager -> Prompt Builder -> Extractor.

    Holds only read-only collaborators created at startup; every call
    to handle() works on its own local data.
    """

    def __init__(self, recognizer: RecognitionSessionManager, extractor: FieldExtractor):
        self.recognizer = recognizer
        self.extractor = extractor

    async def handle(
        self,
        image_bytes: Optional[bytes],
        language: str,
        field_names: Optional[Sequence[str]] = None,
        filename: Optional[str] = None,
        request_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> ResponseEnvelope:
        """
        Process one uploaded image.

        Parameters:
        - image_bytes: raw upload (required, non-empty)
        - language: Tesseract language tag, e.g. "por" or "por+eng"
        - field_names: requested fields; None means the default set
        - filename: original upload name, echoed back
        - request_id / timestamp: supplied by the API layer when it already
          generated them; otherwise created here

        Raises ValidationError or RecognitionError. Both carry request_id.
        """
        request_id = request_id or new_request_id()
        timestamp = timestamp or utc_timestamp()

        # Start -> Validated
        if not image_bytes:
            logger.info(f"[{request_id}] Requisição rejeitada - Nenhum arquivo enviado")
            raise ValidationError(
                'Campo "image" é obrigatório',
                request_id=request_id,
                example='Use form-data com o campo "image" contendo o arquivo de imagem',
            )
        fields = resolve_field_spec(field_names, request_id=request_id)

        logger.info(f"[{request_id}] NOVA REQUISIÇÃO INICIADA")
        logger.info(f"[{request_id}] Arquivo: {filename}")
        logger.info(f"[{request_id}] Tamanho: {len(image_bytes)} bytes")
        logger.info(f"[{request_id}] Idioma: {language}")
        logger.info(f"[{request_id}] Campos solicitados: {fields}")

        # Validated -> Recognized (RecognitionError propagates)
        recognition = await self.recognizer.recognize(image_bytes, language, request_id)

        # Recognized -> Extracted (cannot fail)
        extracted = await self.extractor.extract(recognition.text, fields, request_id)

        # Extracted -> Assembled
        envelope = ResponseEnvelope(
            request_id=request_id,
            original_text=recognition.text,
            extraction_result=extracted,
            requested_fields=fields,
            confidence=recognition.confidence,
            word_count=recognition.word_count,
            language=language,
            source_filename=filename,
            source_size=len(image_bytes),
            timestamp=timestamp,
        )

        logger.info(f"[{request_id}] REQUISIÇÃO CONCLUÍDA COM SUCESSO")
        logger.info(f"[{request_id}] Confiança: {recognition.confidence:.2f}%")
        logger.info(f"[{request_id}] Palavras extraídas: {recognition.word_count}")
        return envelope
