# tests/test_continuation_token.py
import base64

import pytest
from core.exceptions import ClientInputError, InvalidTokenError

from models import (
    ContinuationToken,
    Suggestion,
    ValidationResult,
    VoiceFingerprint,
    WorkshopItem,
    WorkshopRequest,
    decode_token,
    encode_token,
)


def _token() -> ContinuationToken:
    suggestion = Suggestion(
        type="voice_amplifier",
        text="Mi abuela me llamó «ingeniera» — 工程师 🍞",
        rationale="keeps the bilingual voice",
        validation=ValidationResult(is_valid=True, quality_score=88.5),
    )
    return ContinuationToken(
        request=WorkshopRequest(
            essay_text="Café au lait at 5 a.m.; naïve résumé; 漢字 and emoji 🥐.",
            prompt_text="Describe a place",
            essay_type="personal_statement",
        ),
        completed_stage=2,
        voice_fingerprint=VoiceFingerprint.model_validate(
            {"tone": {"primary": "wry"}}
        ),
        workshop_items=[
            WorkshopItem(id="b1-1", quote="Café au lait", suggestions=[suggestion])
        ],
    )


def test_round_trip_preserves_structure_and_non_ascii():
    token = _token()
    decoded = ContinuationToken.decode(token.encode())
    assert decoded == token
    assert decoded.workshop_items[0].suggestions[0].text.endswith("🍞")


def test_module_helpers_match_methods():
    token = _token()
    assert decode_token(encode_token(token)) == token


def test_encoded_token_is_base64_of_utf8_json():
    token = _token()
    raw = base64.b64decode(token.encode()).decode("utf-8")
    assert '"completed_stage":2' in raw.replace(" ", "")


@pytest.mark.parametrize(
    "bad",
    [
        "",
        "   ",
        "not base64 !!!",
        base64.b64encode(b"\xff\xfe\xfa").decode(),
        base64.b64encode(b"{not json").decode(),
        base64.b64encode(b'{"completed_stage": 1}').decode(),
    ],
)
def test_malformed_tokens_raise_invalid_token(bad):
    with pytest.raises(InvalidTokenError):
        ContinuationToken.decode(bad)


def test_invalid_token_is_a_client_error():
    assert issubclass(InvalidTokenError, ClientInputError)
