import json

from doc_extractor.services.prompt import (
    BASE_MAX_TOKENS,
    TOKENS_PER_FIELD,
    build_output_skeleton,
    build_prompt,
    max_tokens_for,
)


def test_skeleton_has_every_field_mapped_to_empty_string_in_order():
    skeleton = build_output_skeleton(["cpf", "nome", "endereço"])

    parsed = json.loads(skeleton)
    assert list(parsed) == ["cpf", "nome", "endereço"]
    assert set(parsed.values()) == {""}
    assert "endereço" in skeleton


def test_prompt_lists_fields_as_bullets_and_embeds_skeleton():
    prompt = build_prompt(["cpf", "rg"])

    assert "- cpf\n- rg" in prompt
    assert build_output_skeleton(["cpf", "rg"]) in prompt
    assert "string vazia" in prompt
    assert "JSON" in prompt


def test_default_fields_carry_hints():
    prompt = build_prompt(["nome", "sobrenome", "data_nascimento"])

    assert "- nome (primeiro nome)" in prompt
    assert "- data_nascimento (formato: DD/MM/AAAA ou AAAA-MM-DD)" in prompt


def test_prompt_is_deterministic():
    assert build_prompt(["a", "b"]) == build_prompt(["a", "b"])
    assert build_prompt(["a", "b"]) != build_prompt(["b", "a"])


def test_output_budget_scales_with_field_count():
    assert max_tokens_for(["nome", "sobrenome", "data_nascimento"]) == 200
    assert max_tokens_for(["x"] * 10) == BASE_MAX_TOKENS + 10 * TOKENS_PER_FIELD
    assert max_tokens_for(["a", "b"]) < max_tokens_for(["a", "b", "c"])
