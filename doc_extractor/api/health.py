from fastapi import APIRouter

from doc_extractor.services.pipeline import utc_timestamp

router = APIRouter()


@router.get(
    "",
    status_code=200,
    summary="Health check",
    description="Liveness probe for the OCR extraction service"
)
def health_check():
    return {"status": "ok", "timestamp": utc_timestamp()}
