"""Signed identity claims: borsh encoding, decoding helpers and checks."""

from __future__ import annotations

import base64
import binascii
import re
import string
import struct
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from .errors import Base64DecodeError, BadRequest, BorshError, ContractPanic, SignatureError

PUBLIC_KEY_LEN = 32
SIGNATURE_LEN = 64

_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_ACCOUNT_ID_RE = re.compile(r"^(([a-z\d]+[-_])*[a-z\d]+\.)*([a-z\d]+[-_])*[a-z\d]+$")


def _is_valid_account_id(account: str) -> bool:
    return 2 <= len(account) <= 64 and _ACCOUNT_ID_RE.match(account) is not None


class _Reader:
    """Sequential reader over borsh bytes; any failure is a BorshError."""

    def __init__(self, data: bytes, what: str) -> None:
        self._data = bytes(data)
        self._pos = 0
        self._what = what

    def _take(self, n: int) -> bytes:
        end = self._pos + n
        if end > len(self._data):
            raise BorshError(self._what)
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u64(self) -> int:
        return _U64.unpack(self._take(8))[0]

    def string(self) -> str:
        (length,) = _U32.unpack(self._take(4))
        try:
            return self._take(length).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BorshError(self._what) from exc

    def boolean(self) -> bool:
        value = self._take(1)[0]
        if value not in (0, 1):
            raise BorshError(self._what)
        return value == 1

    def finish(self) -> None:
        if self._pos != len(self._data):
            raise BorshError(self._what)


def _encode_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return _U32.pack(len(raw)) + raw


@dataclass(frozen=True)
class Claim:
    """A claim signed by the authority that an account owns an external identity."""

    claimer: str
    # Ethereum compatible address: a hex string, optionally prefixed with "0x".
    external_id: str
    # Unix time in seconds when the claim was signed.
    timestamp: int
    verified_kyc: bool

    def to_bytes(self) -> bytes:
        """Return the borsh encoding of the claim."""
        if not 0 <= self.timestamp < 2**64:
            raise ValueError("claim timestamp must fit in an unsigned 64-bit integer")
        return b"".join(
            (
                _encode_string(self.claimer),
                _encode_string(self.external_id),
                _U64.pack(self.timestamp),
                b"\x01" if self.verified_kyc else b"\x00",
            )
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Claim:
        """Decode a claim from borsh bytes; all bytes must be consumed."""
        reader = _Reader(data, "claim")
        claimer = reader.string()
        if not _is_valid_account_id(claimer):
            raise BorshError("claim")
        external_id = reader.string()
        timestamp = reader.u64()
        verified_kyc = reader.boolean()
        reader.finish()
        return cls(claimer, external_id, timestamp, verified_kyc)

    def to_b64(self) -> str:
        """Return the standard base64 of the borsh encoding."""
        return base64.b64encode(self.to_bytes()).decode("ascii")

    @classmethod
    def from_b64(cls, data: str) -> Claim:
        """Decode a claim from standard base64 of its borsh encoding."""
        return cls.from_bytes(b64_decode("claim", data))


def _hex_decode(text: str) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) % 2:
        raise ValueError("Odd number of digits")
    for index, byte in enumerate(raw):
        if chr(byte) not in string.hexdigits:
            raise ValueError(f"Invalid character {chr(byte)!r} at position {index}")
    return bytes.fromhex(text)


def normalize_external_id(external_id: str) -> bytes:
    """Decode an external hex id, dropping a leading "0x" and ignoring case."""
    if external_id.startswith("0x"):
        external_id = external_id[2:]
    try:
        return _hex_decode(external_id.lower())
    except ValueError as exc:
        raise BadRequest(f"claim.external_id: {exc}") from exc


def b64_decode(arg: str, data: str) -> bytes:
    """Decode standard base64; `arg` names the argument in the error."""
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise Base64DecodeError(arg, exc) from exc


def pubkey_from_b64(pubkey: str) -> bytes:
    """Decode a 32 byte ed25519 public key from standard base64."""
    try:
        key = base64.b64decode(pubkey, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ContractPanic("authority_pubkey is not a valid standard base64") from exc
    if len(key) != PUBLIC_KEY_LEN:
        raise ContractPanic("authority pubkey must be 32 bytes")
    return key


def ed25519_verify(signature: bytes, message: bytes, pubkey: bytes) -> bool:
    """Return whether `signature` is a valid ed25519 signature of `message`."""
    if len(signature) != SIGNATURE_LEN or len(pubkey) != PUBLIC_KEY_LEN:
        return False
    try:
        Ed25519PublicKey.from_public_bytes(bytes(pubkey)).verify(bytes(signature), bytes(message))
    except (InvalidSignature, ValueError):
        return False
    return True


def verify_claim(signature: bytes, claim: bytes, pubkey: bytes) -> None:
    """Check the authority's signature over the claim bytes."""
    if len(signature) != SIGNATURE_LEN:
        raise ContractPanic("signature must be 64 bytes")
    if not ed25519_verify(signature, claim, pubkey):
        raise SignatureError("invalid signature")


def is_supported_account(account: str, current_account: str) -> bool:
    """Only root accounts and, on mainnet or testnet, implicit accounts qualify."""
    num_dots = account.count(".")
    if num_dots == 1:
        return True
    if num_dots == 0:
        if current_account.endswith((".near", ".testnet")):
            return len(account) == 64 and all(c in string.hexdigits for c in account)
        return True
    return False