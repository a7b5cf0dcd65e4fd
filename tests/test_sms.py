from __future__ import annotations

import pytest
from pydantic import ValidationError

from sms_dispatch.sms import RawSmsRequest, describe_errors, normalize_request


def test_content_text_normalizes_like_flat_text() -> None:
    """Nested content.text and top-level text produce the same canonical request."""
    flat = normalize_request({"from": "SHOP", "to": ["09171234567"], "text": "Hello"})
    nested = normalize_request(
        {"from": "SHOP", "to": ["09171234567"], "content": {"text": "Hello"}}
    )
    assert flat == nested
    assert nested.text == "Hello"


def test_blank_text_falls_back_to_content_text() -> None:
    request = normalize_request({"text": "   ", "content": {"text": "  From content  "}})
    assert request.text == "From content"


def test_flat_text_wins_over_content_text() -> None:
    request = normalize_request({"text": "Flat", "content": {"text": "Nested"}})
    assert request.text == "Flat"


def test_trims_sender_and_recipients_and_defaults_dcs() -> None:
    request = normalize_request({"from": "  SHOP  ", "to": [" 09171234567 "], "text": "Hi"})
    assert request.sender == "SHOP"
    assert request.recipients == ("09171234567",)
    assert request.dcs == 0


def test_missing_fields_are_left_for_the_validator() -> None:
    """An empty map normalizes fine; blank values are reported later."""
    request = normalize_request({})
    assert request.sender == ""
    assert request.recipients == ()
    assert request.text == ""


def test_explicit_request_id_overrides_payload_value() -> None:
    request = normalize_request({"request_id": "from-payload"}, request_id="REQ_1")
    assert request.request_id == "REQ_1"


def test_credential_overrides_are_carried() -> None:
    request = normalize_request({"app_key": "abcdef", "app_secret": "ghijkl"})
    assert request.app_key == "abcdef"
    assert request.app_secret == "ghijkl"


def test_accepts_a_parsed_raw_request() -> None:
    raw = RawSmsRequest.model_validate({"from": "SHOP", "to": ["09171234567"], "text": "Hi"})
    assert normalize_request(raw).sender == "SHOP"


@pytest.mark.parametrize(
    ("payload", "field"),
    [
        ({"to": "09171234567"}, "to"),
        ({"to": [9171234567]}, "to.0"),
        ({"dcs": "eight"}, "dcs"),
        ({"priority": "high"}, "priority"),
        ({"content": {"text": "Hi", "media": "x"}}, "content.media"),
    ],
)
def test_unknown_shapes_are_rejected(payload: dict[str, object], field: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        normalize_request(payload)

    messages = describe_errors(excinfo.value)
    assert any(message.startswith(f"{field}: ") for message in messages)


def test_non_mapping_payload_is_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        normalize_request(["not", "a", "map"])  # type: ignore[arg-type]

    assert describe_errors(excinfo.value)[0].startswith("request: ")
