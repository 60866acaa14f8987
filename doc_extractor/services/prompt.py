"""
prompt.py

Builds the system instruction sent to the text-understanding service.

The instruction is generated from the requested field names, so the
example JSON shown to the model always has exactly the keys the
extractor will read back.

Pure functions only: no I/O, no logging.
"""

import json
from typing import Dict, Sequence

# Extra guidance for the default fields
FIELD_HINTS: Dict[str, str] = {
    "nome": "primeiro nome",
    "sobrenome": "último nome ou nome completo sem o primeiro nome",
    "data_nascimento": "formato: DD/MM/AAAA ou AAAA-MM-DD",
}

# Output budget: 20 + 60 * 3 = 200 tokens for the default field set
BASE_MAX_TOKENS = 20
TOKENS_PER_FIELD = 60


def build_output_skeleton(field_names: Sequence[str]) -> str:
    """Return the JSON object the model must fill, every field set to ""."""
    return json.dumps({name: "" for name in field_names}, ensure_ascii=False)


def build_prompt(field_names: Sequence[str]) -> str:
    """
    Build the extraction instruction for the given fields.

    The instruction has four parts:
    1. the task (extract named fields from unstructured text)
    2. the field list as bullet items
    3. the empty-string policy for missing fields
    4. the required output shape (flat JSON object, nothing else)
    """
    bullets = []
    for name in field_names:
        hint = FIELD_HINTS.get(name)
        bullets.append(f"- {name} ({hint})" if hint else f"- {name}")

    return (
        "Você é um assistente especializado em extrair dados estruturados de textos.\n"
        "Analise o texto fornecido e extraia as seguintes informações:\n"
        + "\n".join(bullets)
        + "\n\n"
        "Se algum dado não estiver presente no texto, retorne string vazia para esse campo.\n\n"
        "IMPORTANTE: Retorne APENAS um objeto JSON válido, plano, em que cada valor é uma string, no formato:\n"
        + build_output_skeleton(field_names)
        + "\n\n"
        "Não inclua explicações, comentários nem campos adicionais, apenas o JSON."
    )


def max_tokens_for(field_names: Sequence[str]) -> int:
    """Output-length limit proportional to the number of requested fields."""
    return BASE_MAX_TOKENS + TOKENS_PER_FIELD * len(field_names)
