import pytest
from itsdangerous import URLSafeTimedSerializer

from errors import InvalidToken
from security import hash_password, issue_token, verify_password, verify_token


def test_password_hash_is_salted_and_verifiable() -> None:
    first = hash_password("hunter22")
    second = hash_password("hunter22")

    assert first != second
    assert first != "hunter22"
    assert verify_password("hunter22", first)
    assert not verify_password("hunter23", first)


def test_token_round_trip() -> None:
    token = issue_token(42)

    assert verify_token(token) == 42


def test_tampered_token_is_rejected() -> None:
    token = issue_token(42)
    tampered = ("x" if token[0] != "x" else "y") + token[1:]

    with pytest.raises(InvalidToken):
        verify_token(tampered)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c", "...."])
def test_malformed_token_is_rejected(token: str) -> None:
    with pytest.raises(InvalidToken):
        verify_token(token)


def test_token_signed_with_other_secret_is_rejected() -> None:
    forged = URLSafeTimedSerializer("someone-else", salt="auth-token").dumps(
        {"uid": 1}
    )

    with pytest.raises(InvalidToken):
        verify_token(forged)


def test_expired_token_is_rejected() -> None:
    token = issue_token(7)

    with pytest.raises(InvalidToken, match="expired"):
        verify_token(token, max_age_secs=-1)


def test_token_without_integer_user_id_is_rejected() -> None:
    from security import _serializer

    token = _serializer().dumps({"uid": "7"})

    with pytest.raises(InvalidToken):
        verify_token(token)
