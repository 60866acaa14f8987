"""
ocr.py (Schemas)

Data structures that flow through the OCR pipeline and the JSON
shapes returned by POST /ocr.

Python attribute names are English; the JSON keys keep the
Portuguese names clients already depend on (serialization aliases).

This file does NOT:
- Perform OCR
- Call the text-understanding service
- Handle file uploads
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RecognitionResult(BaseModel):
    """
    Output of one recognition session.

    Produced once per request and never modified afterwards.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Recognized text, trimmed")
    confidence: float = Field(..., ge=0, le=100, description="Mean word confidence (0-100)")
    word_count: int = Field(..., ge=0, description="Number of recognized word tokens")
    request_id: str = Field(..., description="Correlation id of the owning request")


class ResponseEnvelope(BaseModel):
    """
    Final JSON body of a successful POST /ocr.

    dados_extraidos always has exactly the keys listed in
    campos_solicitados, in the same order.
    """

    model_config = ConfigDict(frozen=True)

    request_id: str = Field(
        ...,
        serialization_alias="requestId",
        description="Unique id of this request, present in every log line",
        examples=["9f86d081884c7d65"],
    )
    original_text: str = Field(
        ...,
        serialization_alias="texto_original",
        description="Full text recognized by OCR",
    )
    extraction_result: Dict[str, str] = Field(
        ...,
        serialization_alias="dados_extraidos",
        description="Requested fields mapped to extracted values (empty when not found)",
        examples=[{"nome": "Maria", "sobrenome": "Silva", "data_nascimento": "01/02/1990"}],
    )
    requested_fields: List[str] = Field(
        ...,
        serialization_alias="campos_solicitados",
        description="Field names requested by the caller (or the default set)",
    )
    confidence: float = Field(..., serialization_alias="confianca", description="OCR confidence (0-100)")
    word_count: int = Field(..., serialization_alias="palavras", description="Number of recognized words")
    language: str = Field(..., serialization_alias="idioma", description="Tesseract language tag used")
    source_filename: Optional[str] = Field(
        default=None,
        serialization_alias="arquivo",
        description="Original name of the uploaded file",
    )
    source_size: int = Field(..., serialization_alias="tamanho", description="Upload size in bytes")
    timestamp: str = Field(..., description="ISO-8601 time the request was received")


class ErrorResponse(BaseModel):
    """Body returned with 4xx/5xx answers. Never carries a traceback."""

    erro: str
    mensagem: Optional[str] = None
    exemplo: Optional[str] = None
    requestId: str
    timestamp: Optional[str] = None
