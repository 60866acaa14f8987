import json
import warnings

import pytest
from fastapi.testclient import TestClient

from doc_extractor.api.ocr import get_pipeline
from doc_extractor.config import MAX_FILE_SIZE
from doc_extractor.main import create_app
from doc_extractor.services.extractor import FieldExtractor
from doc_extractor.services.ocr import RecognitionSessionManager
from doc_extractor.services.pipeline import OCRPipeline

from conftest import StubOpenAI, make_png


@pytest.fixture
def llm():
    return StubOpenAI(reply='{"nome": "Maria", "sobrenome": "Silva", "data_nascimento": "01/02/1990"}')


@pytest.fixture
def client(stub_factory, llm):
    app = create_app()
    pipeline = OCRPipeline(RecognitionSessionManager(stub_factory), FieldExtractor(llm, "gpt-4o-mini"))
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    return TestClient(app)


def upload(content=None, content_type="image/png", filename="doc.png"):
    return {"image": (filename, content if content is not None else make_png(), content_type)}


def test_post_without_campos_uses_default_fields(client):
    response = client.post("/ocr", files=upload())

    assert response.status_code == 200
    body = response.json()
    assert body["campos_solicitados"] == ["nome", "sobrenome", "data_nascimento"]
    assert body["dados_extraidos"] == {"nome": "Maria", "sobrenome": "Silva", "data_nascimento": "01/02/1990"}
    assert body["idioma"] == "por"
    assert body["arquivo"] == "doc.png"
    assert body["tamanho"] == len(make_png())
    assert body["confianca"] == 91.5
    assert body["palavras"] > 0
    assert body["texto_original"].startswith("por ")
    assert body["requestId"]
    assert body["timestamp"]


def test_post_with_campos_and_idioma(client, llm):
    response = client.post(
        "/ocr",
        files=upload(),
        data={"idioma": "por+eng", "campos": json.dumps(["cpf", "nome"])},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["campos_solicitados"] == ["cpf", "nome"]
    assert body["dados_extraidos"] == {"cpf": "", "nome": "Maria"}
    assert body["idioma"] == "por+eng"
    assert '"cpf": ""' in llm.calls[0]["messages"][0]["content"]


def test_missing_image_returns_400_with_request_id(client, tracker):
    response = client.post("/ocr", data={"idioma": "por"})

    assert response.status_code == 400
    body = response.json()
    assert body["requestId"]
    assert "image" in body["erro"]
    assert tracker.created == 0


@pytest.mark.parametrize("campos", ["not-json", "[]", '["nome", 1]', '{"nome": ""}'])
def test_malformed_campos_returns_400(client, campos):
    response = client.post("/ocr", files=upload(), data={"campos": campos})

    assert response.status_code == 400
    assert response.json()["requestId"]


def test_unsupported_type_returns_400(client):
    response = client.post("/ocr", files=upload(b"%PDF-1.4", "application/pdf", "doc.pdf"))

    assert response.status_code == 400
    assert "requestId" in response.json()


def test_oversized_image_returns_413(client):
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        response = client.post("/ocr", files=upload(b"\0" * (MAX_FILE_SIZE + 1)))

    assert response.status_code == 413
    assert "requestId" in response.json()
    assert not [w for w in caught if "413" in str(w.message)]


def test_recognition_failure_returns_500_without_traceback(client, tracker):
    response = client.post("/ocr", files=upload(b"fail-image"))

    assert response.status_code == 500
    body = response.json()
    assert body["erro"] == "Erro ao processar imagem"
    assert body["requestId"]
    assert body["timestamp"]
    assert "Traceback" not in response.text
    assert tracker.closed == tracker.created == 1


def test_extraction_failure_still_returns_200_with_empty_fields(stub_factory):
    app = create_app()
    failing_llm = StubOpenAI(error=RuntimeError("service down"))
    pipeline = OCRPipeline(RecognitionSessionManager(stub_factory), FieldExtractor(failing_llm, "gpt-4o-mini"))
    app.dependency_overrides[get_pipeline] = lambda: pipeline

    response = TestClient(app).post("/ocr", files=upload(), data={"campos": '["cpf", "rg"]'})

    assert response.status_code == 200
    assert response.json()["dados_extraidos"] == {"cpf": "", "rg": ""}


def test_each_request_gets_its_own_id(client):
    first = client.post("/ocr", files=upload()).json()["requestId"]
    second = client.post("/ocr", files=upload()).json()["requestId"]

    assert first != second


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["timestamp"]


def test_service_info(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "online"
    assert "campos" in body["endpoints"]["ocr"]["parametros"]


def test_image_sent_as_text_field_returns_400_with_request_id(client, tracker):
    response = client.post("/ocr", data={"image": "not-a-file"})

    assert response.status_code == 400
    body = response.json()
    assert body["requestId"]
    assert "image" in body["erro"]
    assert "detail" not in body
    assert tracker.created == 0
