from datetime import timedelta

from cinema.core.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    verify_password,
)


def test_token_carries_subject_and_role():
    token = create_access_token(subject="42", role="admin")
    payload = decode_token(token)
    assert payload.sub == "42"
    assert payload.role == "admin"


def test_expired_token_is_rejected():
    token = create_access_token(subject="42", role="user", expires_delta=timedelta(seconds=-1))
    assert decode_token(token) is None


def test_token_signed_with_another_key_is_rejected():
    token = create_access_token(subject="42", role="user", secret_key="someone-else")
    assert decode_token(token) is None
    assert decode_token("garbage") is None


def test_password_hash(password_hash):
    assert password_hash != "secret"
    assert verify_password("secret", password_hash)
    assert not verify_password("Secret", password_hash)


def test_password_hash_is_salted():
    assert get_password_hash("secret") != get_password_hash("secret")
