import io
import threading
from types import SimpleNamespace

import pytest
from PIL import Image

from doc_extractor.exceptions import RecognitionError
from doc_extractor.schemas.ocr import RecognitionResult


def make_png(size=(40, 20), color="white") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class SessionTracker:
    """Counts sessions created and closed by StubSession."""

    def __init__(self):
        self._lock = threading.Lock()
        self.created = 0
        self.closed = 0
        self.languages = []

    def on_create(self, language):
        with self._lock:
            self.created += 1
            self.languages.append(language)

    def on_close(self):
        with self._lock:
            self.closed += 1


class StubSession:
    """
    Deterministic OCR backend.

    The recognized text is derived from the language and the image bytes;
    images starting with b"fail" raise RecognitionError.
    """

    def __init__(self, tracker, language, request_id, fail_on_close=False):
        self.tracker = tracker
        self.language = language
        self.request_id = request_id
        self.fail_on_close = fail_on_close
        self.state = "created"
        tracker.on_create(language)

    def open(self):
        self.state = "open"

    def recognize(self, image_bytes):
        assert self.state == "open"
        if image_bytes.startswith(b"fail"):
            raise RecognitionError("stub backend cannot read image", self.request_id)
        if image_bytes.startswith(b"boom"):
            raise OSError("stub backend crashed")
        text = f"  {self.language} Maria Silva 01/02/1990 {len(image_bytes)}  "
        return RecognitionResult(
            text=text.strip(),
            confidence=91.5,
            word_count=len(text.split()),
            request_id=self.request_id,
        )

    def close(self):
        self.state = "closed"
        self.tracker.on_close()
        if self.fail_on_close:
            raise OSError("stub teardown failure")


@pytest.fixture
def tracker():
    return SessionTracker()


@pytest.fixture
def stub_factory(tracker):
    def factory(language, request_id):
        return StubSession(tracker, language, request_id)
    return factory


class StubCompletions:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class StubOpenAI:
    """Looks like AsyncOpenAI for chat.completions.create()."""

    def __init__(self, reply=None, error=None):
        self.chat = SimpleNamespace(completions=StubCompletions(reply, error))

    @property
    def calls(self):
        return self.chat.completions.calls
