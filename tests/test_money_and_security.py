from datetime import timedelta
from decimal import Decimal

import pytest

from coopay.core.money import from_minor, quantize, to_minor, to_number
from coopay.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


@pytest.mark.parametrize("value, minor", [
    (Decimal("35000"), 3500000),
    ("0.10", 10),
    (0.1 + 0.2, 30),
    ("12.345", 1235),
    ("-4000", -400000),
    (None, 0),
])
def test_to_minor(value, minor):
    assert to_minor(value) == minor


def test_minor_units_convert_back():
    assert from_minor(1500050) == Decimal("15000.50")
    assert to_number(-400000) == -4000.0


def test_quantize_rejects_garbage():
    with pytest.raises(ValueError):
        quantize("not-a-number")


def test_password_hashing():
    hashed = get_password_hash("secret123")

    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)
    assert not verify_password("secret123", "not-a-bcrypt-hash")
    assert not verify_password("", hashed)


def test_access_token_round_trip():
    token = create_access_token({"sub": "user-1", "role": "manager"})

    payload = decode_access_token(token)
    assert payload["sub"] == "user-1"
    assert payload["role"] == "manager"


def test_expired_or_tampered_tokens_are_rejected():
    expired = create_access_token({"sub": "user-1"}, expires_delta=timedelta(minutes=-5))
    assert decode_access_token(expired) is None

    token = create_access_token({"sub": "user-1"})
    header_and_claims = token.rsplit(".", 1)[0]
    assert decode_access_token(header_and_claims + ".forged-signature") is None
