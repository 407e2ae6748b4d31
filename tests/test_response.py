import pytest

from config import DEFAULT_SERVER_URL
from tokens.exceptions import FormatError
from tokens.response import (
    JsonObject,
    PlainString,
    SessionCredential,
    extract_server_url,
    mask_token,
    normalize_response,
    parse_raw_response,
)


def test_json_object_body_is_classified_as_object() -> None:
    raw = parse_raw_response('{"token": "a.b.c", "wsUrl": "wss://rtc.example"}')

    assert raw == JsonObject({"token": "a.b.c", "wsUrl": "wss://rtc.example"})


def test_non_json_body_is_plain_string() -> None:
    assert parse_raw_response("x.y.z") == PlainString("x.y.z")


def test_json_string_body_is_plain_string() -> None:
    assert parse_raw_response('"x.y.z"') == PlainString("x.y.z")


def test_token_key_yields_default_server_url() -> None:
    credential = normalize_response(JsonObject({"token": "a.b.c"}))

    assert credential == SessionCredential(participant_token="a.b.c", server_url=DEFAULT_SERVER_URL)


def test_plain_string_matches_json_case() -> None:
    assert normalize_response(PlainString("x.y.z")) == normalize_response(JsonObject({"token": "x.y.z"}))


@pytest.mark.parametrize("key", ["token", "participantToken", "accessToken", "participant_token"])
def test_every_token_alias_is_accepted(key) -> None:
    assert normalize_response(JsonObject({key: "a.b.c"})).participant_token == "a.b.c"


def test_first_alias_wins() -> None:
    raw = JsonObject({"participant_token": "d.e.f", "token": "a.b.c", "accessToken": "g.h.i"})

    assert normalize_response(raw).participant_token == "a.b.c"


def test_empty_alias_falls_through_to_next() -> None:
    raw = JsonObject({"token": "", "participantToken": "a.b.c"})

    assert normalize_response(raw).participant_token == "a.b.c"


@pytest.mark.parametrize("falsy", [False, 0, 0.0, None])
def test_falsy_alias_falls_through_to_next(falsy) -> None:
    raw = JsonObject({"token": falsy, "participantToken": "a.b.c"})

    assert normalize_response(raw).participant_token == "a.b.c"


def test_only_falsy_aliases_means_no_token() -> None:
    with pytest.raises(FormatError, match="did not contain a token"):
        normalize_response(JsonObject({"token": False, "accessToken": 0}))


@pytest.mark.parametrize("token", ["abc", "a.b", "a.b.c.d"])
def test_wrong_segment_count_is_format_error(token) -> None:
    with pytest.raises(FormatError):
        normalize_response(PlainString(token))

    with pytest.raises(FormatError):
        normalize_response(JsonObject({"token": token}))


def test_whitespace_and_quotes_are_trimmed() -> None:
    assert normalize_response(PlainString('  "a.b.c"\n')).participant_token == "a.b.c"


def test_missing_token_is_format_error() -> None:
    with pytest.raises(FormatError):
        normalize_response(JsonObject({"wsUrl": "wss://rtc.example"}))


def test_numeric_token_is_coerced_then_rejected() -> None:
    with pytest.raises(FormatError, match="Invalid JWT format"):
        normalize_response(JsonObject({"token": 12345}))


def test_container_token_cannot_be_coerced() -> None:
    with pytest.raises(FormatError, match="cannot be coerced"):
        normalize_response(JsonObject({"token": {"value": "a.b.c"}}))


def test_json_scalar_body_is_rejected() -> None:
    with pytest.raises(FormatError):
        normalize_response(parse_raw_response("42"))


@pytest.mark.parametrize("key", ["wsUrl", "serverUrl", "url", "server_url"])
def test_every_server_url_alias_is_accepted(key) -> None:
    assert extract_server_url(JsonObject({key: "wss://rtc.example"})) == "wss://rtc.example"


def test_server_url_alias_order() -> None:
    raw = JsonObject({"server_url": "wss://d", "url": "wss://c", "serverUrl": "wss://b"})

    assert extract_server_url(raw) == "wss://b"


def test_missing_server_url_uses_default() -> None:
    assert extract_server_url(JsonObject({"token": "a.b.c"})) == DEFAULT_SERVER_URL
    assert extract_server_url(PlainString("a.b.c"), "wss://fallback") == "wss://fallback"


def test_long_token_preview_keeps_ends() -> None:
    token = "A" * 16 + "B" * 30 + "C" * 8

    assert mask_token(token) == "A" * 16 + "..." + "C" * 8


def test_short_token_preview_is_masked() -> None:
    assert mask_token("abcd.efgh.ijkl") == "*" * 10 + "ijkl"
