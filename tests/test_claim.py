import base64

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from sbt_oracle.claim import (
    PUBLIC_KEY_LEN,
    SIGNATURE_LEN,
    Claim,
    b64_decode,
    ed25519_verify,
    is_supported_account,
    normalize_external_id,
    pubkey_from_b64,
    verify_claim,
)
from sbt_oracle.errors import (
    Base64DecodeError,
    BadRequest,
    BorshError,
    ContractPanic,
    SignatureError,
)

ALICE_CLAIM_B64 = (
    "CgAAAGFsaWNlLm5lYXIqAAAAMHhiNGJmMGYyM2M3MDJlZmI4YTlkYTg3YTk0MDk1ZTI4ZGUzZDIxY2MzAAAAAAAAAAAA"
)
TESTNET_AUTHORITY = "zqMwV9fTRoBOLXwt1mHxBAF3d0Rh9E9xwSAXR3/KL5E="
TESTNET_CLAIM_B64 = (
    "FAAAAG15YWNjb3VudDEyMy50ZXN0bmV0IAAAAGFmZWU5MmYwNzEyMjQ2NGU4MzEzYWFlMjI1Y2U1YTNmSGa2ZAAAAAAA"
)
TESTNET_SIG_B64 = (
    "38X2TnWgc6moc4zReAJFQ7BjtOUlWZ+i3YQl9gSMOXwnm5gupfHV/YGmGPOek6SSkotT586d4zTTT2U8Qh3GBw=="
)


def gen_key():
    return Ed25519PrivateKey.generate()


def public_bytes(key):
    return key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def mk_claim(timestamp, external_id, verified_kyc):
    return Claim("user1.near", external_id, timestamp, verified_kyc)


def sign_claim(claim, key):
    raw = claim.to_bytes()
    return (
        base64.b64encode(raw).decode(),
        base64.b64encode(key.sign(raw)).decode(),
    )


def test_key_lengths():
    assert PUBLIC_KEY_LEN == 32
    assert SIGNATURE_LEN == 64
    raw = bytes(range(PUBLIC_KEY_LEN))
    assert bytes(pubkey_from_b64(base64.b64encode(raw).decode())) == raw
    key = gen_key()
    with pytest.raises(ContractPanic, match="signature must be 64 bytes"):
        verify_claim(b"\x00" * (SIGNATURE_LEN + 1), b"msg", public_bytes(key))


def test_borsh_simple_encoding():
    claim = Claim("alice.near", "0xb4bf0f23c702efb8a9da87a94095e28de3d21cc3", 0, False)
    assert claim.to_b64() == ALICE_CLAIM_B64


def test_claim_deserialization_check():
    claim = Claim.from_b64(ALICE_CLAIM_B64)
    assert claim.external_id == "0xb4bf0f23c702efb8a9da87a94095e28de3d21cc3"
    assert claim.claimer == "alice.near"
    assert claim.timestamp == 0
    assert claim.verified_kyc is False


def test_claim_serialization_round_trip():
    claim = mk_claim(1677621259142, "some_111#$!", False)
    assert Claim.from_b64(claim.to_b64()) == claim


def test_claim_round_trip_with_kyc():
    claim = mk_claim(42, "0x1a", True)
    raw = claim.to_bytes()
    assert raw[-1] == 1
    assert Claim.from_bytes(raw) == claim


def test_from_bytes_rejects_trailing_bytes():
    raw = mk_claim(1, "0x1a", False).to_bytes() + b"\x00"
    with pytest.raises(BorshError):
        Claim.from_bytes(raw)


def test_from_bytes_rejects_truncated_input():
    raw = mk_claim(1, "0x1a", False).to_bytes()[:-2]
    with pytest.raises(BorshError):
        Claim.from_bytes(raw)


def test_from_bytes_rejects_bad_bool():
    raw = mk_claim(1, "0x1a", False).to_bytes()[:-1] + b"\x02"
    with pytest.raises(BorshError, match="can't borsh-decode claim"):
        Claim.from_bytes(raw)


def test_from_bytes_rejects_invalid_claimer():
    raw = Claim("Not Valid!", "0x1a", 1, False).to_bytes()
    with pytest.raises(BorshError):
        Claim.from_bytes(raw)


def test_from_b64_rejects_bad_base64():
    with pytest.raises(Base64DecodeError, match="can't base64-decode claim"):
        Claim.from_b64("!!!")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("08", bytes([8])),
        ("10", bytes([16])),
        ("aa", bytes([170])),
        ("1203", bytes([18, 3])),
        ("1223", bytes([18, 35])),
    ],
)
def test_hex_decode(text, expected):
    assert normalize_external_id(text) == expected


def test_hex_decode_address():
    decoded = normalize_external_id("b4bf0f23c702efb8a9da87a94095e28de3d21cc3")
    assert len(decoded) == 20
    assert decoded[0] == 11 * 16 + 4


def test_normalize_strips_prefix_and_case():
    assert normalize_external_id("0xAB12") == bytes([0xAB, 0x12])
    assert normalize_external_id("0x") == b""


@pytest.mark.parametrize(
    "text, message",
    [
        ("8", "claim.external_id: Odd number of digits"),
        ("123", "claim.external_id: Odd number of digits"),
        ("0X", "claim.external_id: Invalid character 'x' at position 1"),
        ("xx", "claim.external_id: Invalid character 'x' at position 0"),
        ("1w", "claim.external_id: Invalid character 'w' at position 1"),
    ],
)
def test_hex_decode_errors(text, message):
    with pytest.raises(BadRequest) as info:
        normalize_external_id(text)
    assert info.value.detail == message


def test_b64_decode_names_argument():
    assert b64_decode("data", "AQID") == b"\x01\x02\x03"
    with pytest.raises(Base64DecodeError) as info:
        b64_decode("claim_sig", "a" + TESTNET_SIG_B64)
    assert info.value.arg == "claim_sig"
    assert str(info.value) == "can't base64-decode claim_sig"


def test_pubkey_from_b64():
    key = pubkey_from_b64("FGoAI6DXghOSK2ZaKVT/5lSP4X4JkoQQphv1FD4YRto=")
    assert len(key) == 32
    assert key[0] == 0x14


def test_pubkey_from_b64_errors():
    with pytest.raises(ContractPanic, match="not a valid standard base64"):
        pubkey_from_b64("@@@")
    with pytest.raises(ContractPanic, match="must be 32 bytes"):
        pubkey_from_b64(base64.b64encode(b"\x01" * 31).decode())


def test_verify_claim():
    key = gen_key()
    claim_b64, sig_b64 = sign_claim(mk_claim(10000, "0x12", False), key)
    claim_bytes = b64_decode("claim_b64", claim_b64)
    signature = b64_decode("sign_b64", sig_b64)
    assert verify_claim(signature, claim_bytes, public_bytes(key)) is None
    assert ed25519_verify(signature, claim_bytes, public_bytes(key)) is True

    with pytest.raises(SignatureError, match="invalid signature"):
        verify_claim(signature, claim_bytes, public_bytes(gen_key()))

    pk3 = pubkey_from_b64("FGoAI6DXghOSK2ZaKVT/5lSP4X4JkoQQphv1FD4YRto=")
    with pytest.raises(SignatureError):
        verify_claim(signature, claim_bytes, pk3)


def test_verify_claim_tampered_message():
    key = gen_key()
    raw = mk_claim(5, "0x12", False).to_bytes()
    signature = key.sign(raw)
    assert ed25519_verify(signature, raw + b"x", public_bytes(key)) is False


def test_verify_claim_requires_64_byte_signature():
    key = gen_key()
    with pytest.raises(ContractPanic, match="signature must be 64 bytes"):
        verify_claim(b"\x00" * 63, b"msg", public_bytes(key))


def test_testnet_claim_signature():
    authority = pubkey_from_b64(TESTNET_AUTHORITY)
    claim_bytes = b64_decode("claim_b64", TESTNET_CLAIM_B64)
    signature = b64_decode("sig_b64", TESTNET_SIG_B64)
    assert verify_claim(signature, claim_bytes, authority) is None
    claim = Claim.from_bytes(claim_bytes)
    assert claim.claimer == "myaccount123.testnet"
    assert claim.external_id == "afee92f07122464e8313aae225ce5a3f"
    assert claim.timestamp == 1689675336
    assert claim.verified_kyc is False


IMPLICIT = "ab" * 32
BAD_IMPLICIT = "ab" * 31 + "a"


@pytest.mark.parametrize(
    "account, expected",
    [
        ("user1.near", True),
        ("user1.near.org", False),
        ("sub.user1.near", False),
        ("sub.sub.user1.near", False),
        (BAD_IMPLICIT, False),
        (IMPLICIT, True),
        ("plainname", False),
    ],
)
def test_is_supported_account_on_mainnet(account, expected):
    assert is_supported_account(account, "oracle.near") is expected


def test_is_supported_account_on_testnet_and_others():
    assert is_supported_account(IMPLICIT.upper(), "oracle.testnet") is True
    assert is_supported_account(BAD_IMPLICIT, "oracle.testnet") is False
    assert is_supported_account("plainname", "oracle") is True
    assert is_supported_account("a.b.c", "oracle") is False