"""
extractor.py

AI-powered extractor that turns OCR text into the fields the caller asked for.

What this service guarantees:
- The returned dict has EXACTLY the requested keys, in the requested order
- A value is "" whenever the model did not find it (or returned junk)
- It never raises: any failure degrades to an all-empty result

The model reply is treated as untrusted text. We never copy its keys;
we walk the caller's field list and look each name up in the reply.
"""

import json
import logging
from typing import Any, Dict, Optional, Sequence

from openai import AsyncOpenAI

from doc_extractor.exceptions import ExtractionDegradation
from doc_extractor.services.prompt import build_prompt, max_tokens_for

# Setup logging
logger = logging.getLogger(__name__)

# Near-deterministic generation
TEMPERATURE = 0.1


def empty_result(field_names: Sequence[str]) -> Dict[str, str]:
    """Every requested field mapped to ""."""
    return {name: "" for name in field_names}


def clean_reply(reply: str) -> str:
    """
    Strip markdown fences and surrounding chatter from a model reply.

    Models sometimes wrap JSON in ```json ... ``` or add a sentence
    before it; keep only the outermost {...} block.
    """
    text = reply.strip()

    if "```" in text:
        parts = text.split("```")
        if len(parts) >= 2:
            text = parts[1].strip()
            if text.lower().startswith("json"):
                text = text[4:].strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1:
        text = text[start:end + 1]

    return text


def parse_reply(reply: Optional[str]) -> Dict[str, Any]:
    """
    Parse the model reply into a flat mapping.

    Raises ExtractionDegradation when the reply is empty, is not
    valid JSON, or is valid JSON but not an object.
    """
    if not reply or not reply.strip():
        raise ExtractionDegradation("empty reply from text-understanding service")

    try:
        parsed = json.loads(reply.strip())
    except json.JSONDecodeError:
        parsed = None

    # Not plain JSON: retry on the fenced or chatty form
    if parsed is None:
        try:
            parsed = json.loads(clean_reply(reply))
        except json.JSONDecodeError as error:
            raise ExtractionDegradation(f"reply is not valid JSON: {error}") from error

    if not isinstance(parsed, dict):
        raise ExtractionDegradation(f"reply is a JSON {type(parsed).__name__}, expected an object")

    return parsed


def _as_field_value(value: Any) -> str:
    # bool is a subclass of int; do not turn true/false into "True"/"False"
    if isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def project_fields(parsed: Dict[str, Any], field_names: Sequence[str]) -> Dict[str, str]:
    """
    Build the final result from the caller's field list.

    Extra keys in `parsed` are ignored; missing, null or non-scalar
    values become "".
    """
    return {name: _as_field_value(parsed.get(name)) for name in field_names}


class FieldExtractor:
    """
    Extracts caller-chosen fields from unstructured text using OpenAI.

    One instance (and one AsyncOpenAI client) is created at startup and
    shared by all requests. It holds no per-request state.
    """

    def __init__(self, client: Optional[AsyncOpenAI], model: str):
        """
        Parameters:
        - client: AsyncOpenAI client, or None when no API key is configured
                  (every extraction then degrades to empty fields)
        - model: chat model name
        """
        self.client = client
        self.model = model

    async def extract(self, text: str, field_names: Sequence[str], request_id: str) -> Dict[str, str]:
        """
        Extract `field_names` from `text`.

        Steps:
        1. Build the instruction from the field list
        2. Call the chat completion API (instruction = system, text = user)
        3. Parse the reply defensively
        4. Project the reply onto the field list

        Any failure in steps 2-4 is logged with the request id and
        turned into an all-empty result.
        """
        logger.info(f"[{request_id}] Iniciando extração de dados ({len(field_names)} campos)")

        try:
            if self.client is None:
                raise ExtractionDegradation("text-understanding service is not configured (OPENAI_API_KEY)")

            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_prompt(field_names)},
                    {"role": "user", "content": f"Extraia os dados deste texto:\n\n{text}"},
                ],
                temperature=TEMPERATURE,
                max_tokens=max_tokens_for(field_names),
                response_format={"type": "json_object"},
            )

            reply = completion.choices[0].message.content
            logger.info(f"[{request_id}] Resposta do modelo: {reply}")

            result = project_fields(parse_reply(reply), field_names)

        except Exception as error:
            # ExtractionDegradation, network errors, API errors: the caller
            # still gets a well-shaped result
            logger.error(f"[{request_id}] Erro ao extrair dados: {error}")
            return empty_result(field_names)

        logger.info(f"[{request_id}] Dados extraídos: {result}")
        return result
