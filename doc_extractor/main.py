"""
main.py

This is the main entry point of the FastAPI application.
Here we create the FastAPI app, build the shared pipeline and
register all API routes.

This file does NOT contain business logic.
It only wires everything together.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from doc_extractor.api.health import router as health_router
from doc_extractor.api.info import SERVICE_VERSION, router as info_router
from doc_extractor.api.ocr import request_validation_handler, router as ocr_router
from doc_extractor.api.responses import UnicodeJSONResponse
from doc_extractor.config import LOG_LEVEL, OPENAI_API_KEY, OPENAI_MODEL, PORT
from doc_extractor.services.extractor import FieldExtractor
from doc_extractor.services.ocr import RecognitionSessionManager
from doc_extractor.services.pipeline import OCRPipeline

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [OCR-API] %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    One OpenAI client for the whole process, closed on shutdown.
    Requests only read app.state.pipeline, never change it.
    """
    client = None
    if OPENAI_API_KEY:
        client = AsyncOpenAI(api_key=OPENAI_API_KEY)
    else:
        logger.warning("OPENAI_API_KEY não configurada - extração retornará campos vazios")

    app.state.pipeline = OCRPipeline(
        recognizer=RecognitionSessionManager(),
        extractor=FieldExtractor(client, OPENAI_MODEL),
    )

    logger.info(f"API de OCR rodando na porta {PORT}")
    logger.info("Documentação: GET /")
    logger.info("Processar imagem: POST /ocr")

    try:
        yield
    finally:
        if client is not None:
            await client.close()
        logger.info("API de OCR finalizada")


def create_app() -> FastAPI:
    """
    Creates and returns the FastAPI application instance.
    This function helps keep the app creation clean and testable.
    """
    app = FastAPI(
        title="OCR Extraction Service",
        description="Image OCR (Tesseract) with AI extraction of caller-defined fields",
        version=SERVICE_VERSION,
        default_response_class=UnicodeJSONResponse,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register API routes
    app.include_router(info_router, tags=["Info"])
    app.include_router(health_router, prefix="/health", tags=["Health"])
    app.include_router(ocr_router, prefix="/ocr", tags=["OCR"])

    # Unbindable form data answers 400 with a requestId, like any other bad input
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    return app


# Create the FastAPI app instance
app = create_app()
