"""
ocr.py

Recognition Session Manager: reads text from one uploaded image.

Every request gets its own RecognitionSession:
- a private scratch directory holding the decoded image
- its own Tesseract process (pytesseract spawns one per call)
- nothing cached or pooled between requests

A session is opened right before recognition and always closed
afterwards (success, error or cancellation). Failures while closing
are logged as ResourceReleaseWarning lines and never replace the
original result or error.

This file:
- Does NOT call the text-understanding service
- Does NOT contain FastAPI routes
"""

import asyncio
import io
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, List, Optional

import pytesseract
from PIL import Image, UnidentifiedImageError

from doc_extractor.config import TESSERACT_CMD
from doc_extractor.exceptions import RecognitionError
from doc_extractor.schemas.ocr import RecognitionResult

# Setup logging
logger = logging.getLogger(__name__)

# Optional explicit path to the tesseract executable
if TESSERACT_CMD:
    pytesseract.pytesseract.tesseract_cmd = TESSERACT_CMD

# LSTM engine, fully automatic page segmentation
TESSERACT_CONFIG = "--oem 3 --psm 3"

ProgressCallback = Callable[[float], None]


def assemble_text(data: Dict[str, list]) -> str:
    """
    Rebuild the page text from pytesseract.image_to_data() output.

    - words on the same line are joined with spaces
    - lines of a block are joined with newlines
    - blocks are separated by a blank line
    """
    blocks: Dict[int, Dict[int, Dict[int, List[str]]]] = {}

    for i, raw_word in enumerate(data["text"]):
        word = str(raw_word).strip()
        if not word:
            continue
        block = data["block_num"][i]
        par = data["par_num"][i]
        line = data["line_num"][i]
        blocks.setdefault(block, {}).setdefault(par, {}).setdefault(line, []).append(word)

    result_blocks = []
    for block_num in sorted(blocks):
        block_lines = []
        for par_num in sorted(blocks[block_num]):
            for line_num in sorted(blocks[block_num][par_num]):
                block_lines.append(" ".join(blocks[block_num][par_num][line_num]))
        result_blocks.append("\n".join(block_lines))

    return "\n\n".join(result_blocks)


def word_confidences(data: Dict[str, list]) -> List[float]:
    """Confidence of every real word (non-empty text, conf >= 0)."""
    confidences = []
    for raw_word, raw_conf in zip(data["text"], data["conf"]):
        if not str(raw_word).strip():
            continue
        try:
            conf = float(raw_conf)
        except (TypeError, ValueError):
            continue
        if conf >= 0:
            confidences.append(conf)
    return confidences


class RecognitionSession:
    """
    Exclusive OCR execution context for ONE request.

    Lifecycle: open() -> recognize() -> close()
    close() is safe to call in any state, including after a failed open().
    """

    def __init__(
        self,
        language: str,
        request_id: str,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.language = language
        self.request_id = request_id
        self.on_progress = on_progress
        self._workdir: Optional[tempfile.TemporaryDirectory] = None
        self._image: Optional[Image.Image] = None
        self._image_path: Optional[str] = None

    def _report(self, fraction: float) -> None:
        if self.on_progress is not None:
            self.on_progress(fraction)

    def open(self) -> None:
        """
        Prepare the context: private scratch directory and language data.

        Raises RecognitionError when Tesseract is missing or a requested
        language is not installed.
        """
        self._workdir = tempfile.TemporaryDirectory(prefix=f"ocr-{self.request_id}-")

        try:
            installed = set(pytesseract.get_languages(config=""))
        except pytesseract.TesseractNotFoundError as error:
            raise RecognitionError(f"Tesseract não encontrado: {error}", self.request_id) from error

        missing = [lang for lang in self.language.split("+") if lang not in installed]
        if missing:
            raise RecognitionError(
                f"Idioma não suportado pelo OCR: {', '.join(missing)}",
                self.request_id,
            )

        self._report(0.0)

    def _load_image(self, image_bytes: bytes) -> str:
        # Decode, keep the first frame (GIF/WebP), normalize the mode and
        # write a PNG that only this session's Tesseract process reads
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.seek(0)
            if image.mode not in ("RGB", "L"):
                image = image.convert("RGB")
        except (UnidentifiedImageError, OSError) as error:
            raise RecognitionError(f"Não foi possível decodificar a imagem: {error}", self.request_id) from error

        self._image = image
        path = os.path.join(self._workdir.name, "input.png")
        image.save(path, format="PNG")
        return path

    def recognize(self, image_bytes: bytes) -> RecognitionResult:
        """
        Run OCR on the image (blocking; call from a worker thread).

        One image_to_data() call gives words, layout and confidences,
        so the text and the score come from the same pass.
        """
        if self._workdir is None:
            raise RecognitionError("Sessão de OCR não foi aberta", self.request_id)

        self._image_path = self._load_image(image_bytes)
        self._report(0.5)

        try:
            data = pytesseract.image_to_data(
                self._image_path,
                lang=self.language,
                config=TESSERACT_CONFIG,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as error:
            raise RecognitionError(f"Falha no reconhecimento: {error}", self.request_id) from error

        self._report(1.0)

        confidences = word_confidences(data)
        avg_confidence = sum(confidences) / len(confidences) if confidences else 0.0

        return RecognitionResult(
            text=assemble_text(data).strip(),
            confidence=min(max(avg_confidence, 0.0), 100.0),
            word_count=len(confidences),
            request_id=self.request_id,
        )

    def close(self) -> None:
        """Release the image and delete the scratch directory."""
        image, self._image = self._image, None
        workdir, self._workdir = self._workdir, None
        try:
            if image is not None:
                image.close()
        finally:
            if workdir is not None:
                workdir.cleanup()


SessionFactory = Callable[[str, str], RecognitionSession]


def _log_progress(request_id: str) -> ProgressCallback:
    def log(fraction: float) -> None:
        logger.info(f"[{request_id}] Progresso: {round(fraction * 100)}%")
    return log


def default_session_factory(language: str, request_id: str) -> RecognitionSession:
    return RecognitionSession(language, request_id, on_progress=_log_progress(request_id))


class RecognitionSessionManager:
    """
    Creates one disposable session per call and guarantees its release.

    There is deliberately no pool and no concurrency cap: concurrent
    requests each open their own session, bounded only by what the
    host can run.
    """

    def __init__(self, session_factory: SessionFactory = default_session_factory):
        self.session_factory = session_factory

    @asynccontextmanager
    async def session(self, language: str, request_id: str) -> AsyncIterator[RecognitionSession]:
        """Open an exclusive session and close it on every exit path."""
        logger.info(f"[{request_id}] Criando sessão de OCR exclusiva ({language})")
        session = self.session_factory(language, request_id)
        try:
            await asyncio.to_thread(session.open)
            yield session
        finally:
            await self._release(session, request_id)

    @staticmethod
    async def _release(session: RecognitionSession, request_id: str) -> None:
        # Deleting the scratch dir is disk I/O; keep it off the event loop
        try:
            await asyncio.to_thread(session.close)
        except Exception as error:
            logger.warning(f"[{request_id}] ResourceReleaseWarning: erro ao finalizar sessão de OCR: {error}")
        else:
            logger.info(f"[{request_id}] Sessão de OCR finalizada e recursos liberados")

    async def recognize(self, image_bytes: bytes, language: str, request_id: str) -> RecognitionResult:
        """
        Recognize `image_bytes` in a brand-new session.

        Raises RecognitionError (after the session was released) when the
        backend cannot start or cannot read the image. No retry.
        """
        try:
            async with self.session(language, request_id) as session:
                logger.info(f"[{request_id}] Sessão criada, iniciando reconhecimento")
                result = await asyncio.to_thread(session.recognize, image_bytes)
        except RecognitionError as error:
            logger.error(f"[{request_id}] Erro ao processar imagem: {error}")
            raise
        except Exception as error:
            logger.error(f"[{request_id}] Erro ao processar imagem: {error}")
            raise RecognitionError(str(error), request_id) from error

        logger.info(f"[{request_id}] Reconhecimento concluído")
        return result
