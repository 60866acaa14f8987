"""
info.py (API Route)

GET / returns a static description of the service: endpoints,
parameters, accepted formats and the response shape.
"""

from fastapi import APIRouter

from doc_extractor.config import SUPPORTED_LANGUAGES
from doc_extractor.services.fields import DEFAULT_FIELDS

router = APIRouter()

SERVICE_VERSION = "2.0.0"


def usage_document() -> dict:
    return {
        "status": "online",
        "versao": SERVICE_VERSION,
        "nome": "API de OCR - Conversor de Imagem para Texto com Extração de Dados via IA",
        "endpoints": {
            "ocr": {
                "metodo": "POST",
                "url": "/ocr",
                "descricao": (
                    "Extrai texto de imagem e dados estruturados (campos escolhidos pelo cliente) "
                    "usando OCR + GPT"
                ),
                "content_type": "multipart/form-data",
                "parametros": {
                    "image": "file (imagem) - obrigatório",
                    "idioma": 'string - opcional (padrão: "por")',
                    "campos": (
                        "array JSON de strings - opcional "
                        f"(padrão: {list(DEFAULT_FIELDS)})"
                    ),
                },
                "formatos_suportados": ["JPEG", "PNG", "GIF", "BMP", "WebP"],
                "tamanho_maximo": "50MB",
                "resposta": {
                    "requestId": "ID único da requisição",
                    "texto_original": "Texto completo extraído da imagem",
                    "dados_extraidos": "Objeto com exatamente os campos solicitados (vazio se não encontrado)",
                    "campos_solicitados": "Lista de campos usada na extração",
                    "confianca": "Confiança do OCR (0-100)",
                    "palavras": "Número de palavras identificadas",
                    "idioma": "Idioma utilizado",
                    "arquivo": "Nome do arquivo enviado",
                    "tamanho": "Tamanho em bytes",
                    "timestamp": "Data/hora do processamento",
                },
            },
            "health": {"metodo": "GET", "url": "/health"},
        },
        "idiomas_suportados": SUPPORTED_LANGUAGES,
        "features": [
            "OCR com Tesseract",
            "Extração de dados estruturados com GPT",
            "Campos de extração definidos pelo cliente",
            "Isolamento total entre requisições",
            "Suporte a múltiplos idiomas",
            "Rastreamento com requestId único",
        ],
    }


@router.get(
    "/",
    summary="Service description",
    description="Static usage documentation for the OCR extraction API"
)
def service_info():
    return usage_document()
