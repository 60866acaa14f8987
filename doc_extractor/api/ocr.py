"""
ocr.py (API Route)

POST /ocr: upload an image, get its text and the requested fields.

What this file does:
- Accepts the multipart upload (image, idioma, campos)
- Checks file type and size
- Decodes the "campos" JSON
- Hands everything to OCRPipeline
- Maps pipeline errors to HTTP status codes

What this file does NOT do:
- Run OCR or call the text-understanding service (OCRPipeline does)
- Save files to disk

Status codes:
- 200: success (fields the model could not find are "")
- 400: image missing, unsupported type, or bad "campos"
- 413: image larger than 50MB
- 500: the image could not be processed
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError

from doc_extractor.api.responses import UnicodeJSONResponse
from doc_extractor.config import ALLOWED_MIME_TYPES, DEFAULT_LANGUAGE, MAX_FILE_SIZE
from doc_extractor.exceptions import RecognitionError, ValidationError
from doc_extractor.schemas.ocr import ErrorResponse, ResponseEnvelope
from doc_extractor.services.fields import parse_campos
from doc_extractor.services.pipeline import OCRPipeline, new_request_id, utc_timestamp

logger = logging.getLogger(__name__)

# Registered in main.py
router = APIRouter()


def get_pipeline(request: Request) -> OCRPipeline:
    """Process-wide pipeline created in the app lifespan."""
    return request.app.state.pipeline


def _error(status_code: int, request_id: str, erro: str, **extra) -> UnicodeJSONResponse:
    body = {"erro": erro, **{key: value for key, value in extra.items() if value is not None}}
    body["requestId"] = request_id
    return UnicodeJSONResponse(status_code=status_code, content=body)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> UnicodeJSONResponse:
    """
    Form data FastAPI could not bind (e.g. "image" sent as text, not a file).

    Answered with the same 400 body as the handler's own validation errors.
    """
    request_id = new_request_id()
    locations = [str(part) for error in exc.errors() for part in error.get("loc", ())]
    logger.info(f"[{request_id}] Requisição rejeitada - Validação falhou: {locations}")

    if "image" in locations:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            request_id,
            'Campo "image" é obrigatório',
            exemplo='Use form-data com o campo "image" contendo o arquivo de imagem',
        )
    return _error(
        status.HTTP_400_BAD_REQUEST,
        request_id,
        "Requisição inválida",
        mensagem="; ".join(error.get("msg", "") for error in exc.errors()),
    )


@router.post(
    "",
    response_model=ResponseEnvelope,
    status_code=status.HTTP_200_OK,
    summary="Extract text and structured fields from an image",
    description=(
        "Upload an image (JPEG, PNG, GIF, BMP or WebP, up to 50MB). "
        "The text is read with Tesseract OCR and the requested fields "
        "are extracted with an OpenAI model."
    ),
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def process_image(
    image: Optional[UploadFile] = File(None, description="Image file (required)"),
    idioma: Optional[str] = Form(None, description='Tesseract language, e.g. "por", "eng", "por+eng"'),
    campos: Optional[str] = Form(None, description='JSON array of field names, e.g. ["nome", "cpf"]'),
    pipeline: OCRPipeline = Depends(get_pipeline),
):
    """
    Step-by-step:
    1. Create the request id (every log line and error body carries it)
    2. Check file type and size
    3. Decode "campos"
    4. Run the pipeline (validate -> OCR -> extraction -> envelope)
    """
    request_id = new_request_id()
    timestamp = utc_timestamp()

    image_bytes = None
    filename = None

    try:
        if image is not None:
            filename = image.filename

            if image.content_type not in ALLOWED_MIME_TYPES:
                logger.info(f"[{request_id}] Requisição rejeitada - Tipo não suportado: {image.content_type}")
                return _error(
                    status.HTTP_400_BAD_REQUEST,
                    request_id,
                    "Formato de arquivo não suportado. Use: JPEG, PNG, GIF, BMP ou WebP",
                )

            # Read one byte past the limit so oversized uploads are detected
            image_bytes = await image.read(MAX_FILE_SIZE + 1)
            if len(image_bytes) > MAX_FILE_SIZE:
                logger.info(f"[{request_id}] Requisição rejeitada - Arquivo maior que 50MB")
                return _error(
                    413,
                    request_id,
                    "Arquivo excede o tamanho máximo de 50MB",
                )

        field_names = parse_campos(campos, request_id=request_id)
        language = (idioma or "").strip() or DEFAULT_LANGUAGE

        return await pipeline.handle(
            image_bytes,
            language,
            field_names,
            filename=filename,
            request_id=request_id,
            timestamp=timestamp,
        )

    except ValidationError as error:
        return _error(status.HTTP_400_BAD_REQUEST, request_id, str(error), exemplo=error.example)

    except Exception as error:
        # RecognitionError, or anything unexpected: report it without a traceback
        if not isinstance(error, RecognitionError):
            logger.exception(f"[{request_id}] Erro inesperado")
        logger.error(f"[{request_id}] ✗ ERRO NA REQUISIÇÃO: {error}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id,
            "Erro ao processar imagem",
            mensagem=str(error),
            timestamp=timestamp,
        )
