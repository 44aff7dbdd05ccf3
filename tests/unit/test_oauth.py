from types import SimpleNamespace

import jwt
import pytest
from fastapi import HTTPException

from questlog.auth.oauth import (
    GoogleOAuthIdentity,
    consume_google_oauth_state,
    new_google_oauth_flow,
    validate_google_id_token_nonce,
)


def _request() -> SimpleNamespace:
    return SimpleNamespace(session={})


def test_identity_maps_to_open_id_and_name() -> None:
    identity = GoogleOAuthIdentity(provider_user_id="1234", email="ada@example.com")

    assert identity.open_id == "google_1234"
    assert identity.display_name == "ada"


def test_state_round_trip_returns_nonce() -> None:
    request = _request()
    state, nonce = new_google_oauth_flow(request)

    assert consume_google_oauth_state(request, received_state=state) == nonce
    # The flow is single-use
    with pytest.raises(HTTPException):
        consume_google_oauth_state(request, received_state=state)


def test_mismatched_state_is_rejected() -> None:
    request = _request()
    new_google_oauth_flow(request)

    with pytest.raises(HTTPException) as exc_info:
        consume_google_oauth_state(request, received_state="forged")
    assert exc_info.value.status_code == 400


def test_missing_flow_is_rejected() -> None:
    with pytest.raises(HTTPException):
        consume_google_oauth_state(_request(), received_state="anything")


def test_id_token_nonce_check() -> None:
    id_token = jwt.encode({"nonce": "abc"}, "unverified-signing-key-for-tests-only", algorithm="HS256")

    validate_google_id_token_nonce(id_token, expected_nonce="abc")
    with pytest.raises(HTTPException):
        validate_google_id_token_nonce(id_token, expected_nonce="xyz")
    with pytest.raises(HTTPException):
        validate_google_id_token_nonce(None, expected_nonce="abc")
