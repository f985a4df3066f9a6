import base64
import json
import pytest
import jwt
from datetime import datetime, timedelta, timezone
from flask import g, jsonify

from backend.auth_service.utils import (
    TOKEN_LIFETIME,
    TokenService,
    current_user_id,
    extract_token,
    login_required,
)
from backend.errors import InvalidToken

TEST_SECRET = "test_secret_with_at_least_32_bytes!!"


def _claims(sub="7", **overrides):
    now = datetime.now(timezone.utc)
    claims = {"sub": sub, "iat": now, "exp": now + timedelta(hours=1)}
    claims.update(overrides)
    return claims


def test_issue_token(tokens):
    token = tokens.issue(123)

    assert isinstance(token, str)

    # Decode to verify contents using the same secret
    payload = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
    assert payload["sub"] == "123"
    assert payload["exp"] - payload["iat"] == int(TOKEN_LIFETIME.total_seconds())
    assert jwt.get_unverified_header(token)["alg"] == "HS256"


def test_verify_token_round_trip(tokens):
    assert tokens.verify(tokens.issue(456)) == 456


def test_verify_expired_token():
    expired = TokenService(TEST_SECRET, lifetime=timedelta(seconds=-10)).issue(1)
    with pytest.raises(InvalidToken):
        TokenService(TEST_SECRET).verify(expired)


def test_verify_token_signed_with_other_key(tokens):
    other = TokenService("another_secret_with_at_least_32_bytes").issue(1)
    with pytest.raises(InvalidToken):
        tokens.verify(other)


def test_verify_tampered_payload(tokens):
    header, _, signature = tokens.issue(1).split(".")
    forged_payload = jwt.encode(_claims(sub="999"), TEST_SECRET, algorithm="HS256").split(".")[1]

    with pytest.raises(InvalidToken):
        tokens.verify(f"{header}.{forged_payload}.{signature}")


def test_verify_rejects_other_hmac_algorithm(tokens):
    token = jwt.encode(_claims(), TEST_SECRET, algorithm="HS512")
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_verify_rejects_unsigned_token(tokens):
    def b64(obj):
        raw = json.dumps(obj).encode()
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()

    now = int(datetime.now(timezone.utc).timestamp())
    claims = {"sub": "7", "iat": now, "exp": now + 3600}
    token = f"{b64({'alg': 'none', 'typ': 'JWT'})}.{b64(claims)}."
    with pytest.raises(InvalidToken):
        tokens.verify(token)


@pytest.mark.parametrize("claims", [
    {"sub": "abc"},
    {"sub": "0"},
    {"sub": "-4"},
])
def test_verify_rejects_bad_subject(tokens, claims):
    token = jwt.encode(_claims(**claims), TEST_SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_verify_rejects_missing_claims(tokens):
    now = datetime.now(timezone.utc)
    token = jwt.encode({"sub": "1", "iat": now}, TEST_SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_verify_garbage(tokens):
    with pytest.raises(InvalidToken):
        tokens.verify("invalid.token.here")


def test_failures_look_the_same(tokens):
    expired = TokenService(TEST_SECRET, lifetime=timedelta(seconds=-10)).issue(1)
    forged = TokenService("another_secret_with_at_least_32_bytes").issue(1)

    messages = set()
    for token in (expired, forged, "invalid.token.here"):
        with pytest.raises(InvalidToken) as exc:
            tokens.verify(token)
        messages.add(str(exc.value))
    assert messages == {"invalid token"}


def test_token_service_requires_secret():
    with pytest.raises(ValueError):
        TokenService("")


@pytest.mark.parametrize("header, expected", [
    (None, None),
    ("", None),
    ("   ", None),
    ("Bearer ", None),
    ("Bearer abc.def.ghi", "abc.def.ghi"),
    ("bearer abc.def.ghi", "abc.def.ghi"),
    ("abc.def.ghi", "abc.def.ghi"),
])
def test_extract_token(header, expected):
    assert extract_token(header) == expected


# --- AUTH GATE ---

def _protected():
    return jsonify({"user_id": current_user_id()}), 200


def test_gate_sets_user_id(app, auth_header):
    view = login_required(_protected)
    with app.test_request_context(headers=auth_header(789)):
        resp, code = view()
        assert code == 200
        assert g.user_id == 789
        assert resp.json["user_id"] == 789


def test_gate_accepts_bare_token(app, tokens):
    view = login_required(_protected)
    with app.test_request_context(headers={"Authorization": tokens.issue(5)}):
        _, code = view()
        assert code == 200
        assert g.user_id == 5


def test_gate_missing_header_skips_verification(app, mocker):
    verify = mocker.spy(app.extensions["eventgate"]["tokens"], "verify")
    inner = mocker.Mock()
    view = login_required(inner)

    with app.test_request_context():
        resp, code = view()

    assert code == 401
    assert resp.json["error"] == "Not authorized."
    verify.assert_not_called()
    inner.assert_not_called()


def test_gate_invalid_token_halts_request(app):
    called = []
    view = login_required(lambda: called.append(True))

    with app.test_request_context(headers={"Authorization": "Bearer invalid.token.here"}):
        resp, code = view()
        assert code == 401
        assert resp.json["error"] == "Not authorized."
        assert "user_id" not in g

    assert called == []


def test_authenticate_request_raises_unauthorized(app):
    from backend.auth_service.utils import authenticate_request
    from backend.errors import Unauthorized

    with app.test_request_context(headers={"Authorization": "Bearer "}):
        with pytest.raises(Unauthorized):
            authenticate_request()

    with app.test_request_context(headers={"Authorization": "Bearer invalid.token.here"}):
        with pytest.raises(Unauthorized) as exc:
            authenticate_request()
        assert str(exc.value) == "Not authorized."
