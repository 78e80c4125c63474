from datetime import timedelta

from factory_kpi.core.security import (
    _create_token,
    create_session_token,
    ensure_password_hash,
    generate_password,
    get_password_hash,
    get_token_subject,
    is_password_hash,
    verify_password,
)


def test_hash_and_verify():
    hashed = get_password_hash("admin123")
    assert is_password_hash(hashed)
    assert verify_password("admin123", hashed)
    assert not verify_password("admin124", hashed)


def test_plain_text_stored_password_never_verifies():
    assert not verify_password("admin123", "admin123")


def test_ensure_password_hash_is_idempotent():
    hashed = ensure_password_hash("secret")
    assert hashed != "secret"
    assert ensure_password_hash(hashed) == hashed


def test_generated_passwords_avoid_ambiguous_characters():
    password = generate_password(200)
    assert len(password) == 200
    assert not set(password) & set("0O1lI")


def test_session_token_round_trip():
    token = create_session_token(subject="user-1", role="admin")
    assert get_token_subject(token) == "user-1"


def test_invalid_tokens_have_no_subject():
    token = create_session_token(subject="user-1")
    assert get_token_subject(token + "x") is None
    assert get_token_subject("garbage") is None
    assert get_token_subject(_create_token({"sub": "user-1"}, timedelta(minutes=5), token_type="refresh")) is None
    assert get_token_subject(_create_token({"sub": "user-1"}, timedelta(minutes=-5), token_type="session")) is None
