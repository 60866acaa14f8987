"""
fields.py

Parsing and validation of the caller's field list ("campos").

A field spec is an ordered set of unique, non-empty names.
When the caller does not send one, DEFAULT_FIELDS is used.
"""

import json
from collections.abc import Sequence
from typing import List, Optional

from doc_extractor.exceptions import ValidationError

DEFAULT_FIELDS = ("nome", "sobrenome", "data_nascimento")

CAMPOS_EXAMPLE = 'campos=["nome", "cpf", "data_nascimento"]'


def parse_campos(raw: Optional[str], request_id: Optional[str] = None) -> Optional[List[str]]:
    """
    Decode the multipart "campos" value.

    Returns None when the value is absent or blank, so the caller
    falls back to the default field set. Raises ValidationError
    when the value is not a JSON array.
    """
    if raw is None or not raw.strip():
        return None

    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError(
            'Campo "campos" deve ser um JSON válido',
            request_id=request_id,
            example=CAMPOS_EXAMPLE,
        )

    if not isinstance(decoded, list):
        raise ValidationError(
            'Campo "campos" deve ser um array JSON de strings',
            request_id=request_id,
            example=CAMPOS_EXAMPLE,
        )

    return decoded


def resolve_field_spec(field_names: Optional[Sequence], request_id: Optional[str] = None) -> List[str]:
    """
    Turn an optional list of names into a validated field spec.

    - None -> default fields
    - every item must be a string that is non-empty after stripping
    - duplicates are dropped, first occurrence wins
    - the result must not be empty
    """
    if field_names is None:
        return list(DEFAULT_FIELDS)

    if isinstance(field_names, (str, bytes)) or not isinstance(field_names, Sequence):
        raise ValidationError(
            'Campo "campos" deve ser um array de strings',
            request_id=request_id,
            example=CAMPOS_EXAMPLE,
        )

    resolved: List[str] = []
    for name in field_names:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(
                'Campo "campos" deve conter apenas strings não vazias',
                request_id=request_id,
                example=CAMPOS_EXAMPLE,
            )
        name = name.strip()
        if name not in resolved:
            resolved.append(name)

    if not resolved:
        raise ValidationError(
            'Campo "campos" não pode ser um array vazio',
            request_id=request_id,
            example=CAMPOS_EXAMPLE,
        )

    return resolved
