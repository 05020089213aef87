"""Data types, costs and call descriptions shared by the oracle contract."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

ClassId = int
TokenId = int

STANDARD_NAME = "sbt"

CLASS_FV_SBT: ClassId = 1
CLASS_KYC_SBT: ClassId = 2

# Storage deposit, in yoctoNEAR, the registry needs for every minted token.
MINT_COST = 9_000_000_000_000_000_000_000

# Fri, 1 Sep 2023 23:59:59 UTC and Fri, 22 Sep 2023 23:59:59 UTC, in milliseconds.
ELECTIONS_START = 1693612799000
ELECTIONS_END = 1695427199000

_NANOS_PER_MS = 1_000_000

T = TypeVar("T")
E = TypeVar("E")


def mint_deposit(num_tokens: int) -> int:
    """Return the storage deposit, in yoctoNEAR, needed to mint `num_tokens` tokens."""
    if num_tokens < 0:
        raise ValueError("number of tokens must not be negative")
    return num_tokens * MINT_COST


MINT_TOTAL_COST = mint_deposit(1)
MINT_TOTAL_COST_WITH_KYC = mint_deposit(2)


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True)
class ContractMetadata:
    """NFT-like metadata describing the issuing contract."""

    spec: str
    name: str
    symbol: str
    icon: str | None = None
    base_uri: str | None = None
    reference: str | None = None
    reference_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, with every field present."""
        return {
            "spec": self.spec,
            "name": self.name,
            "symbol": self.symbol,
            "icon": self.icon,
            "base_uri": self.base_uri,
            "reference": self.reference,
            "reference_hash": self.reference_hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContractMetadata:
        """Build metadata from its JSON form; optional fields may be missing."""
        return cls(
            spec=data["spec"],
            name=data["name"],
            symbol=data["symbol"],
            icon=data.get("icon"),
            base_uri=data.get("base_uri"),
            reference=data.get("reference"),
            reference_hash=data.get("reference_hash"),
        )


@dataclass(frozen=True)
class ClassMetadata:
    """Metadata describing one token class of the issuer."""

    name: str
    symbol: str | None = None
    icon: str | None = None
    reference: str | None = None
    reference_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, with every field present."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "icon": self.icon,
            "reference": self.reference,
            "reference_hash": self.reference_hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClassMetadata:
        """Build metadata from its JSON form; optional fields may be missing."""
        return cls(
            name=data["name"],
            symbol=data.get("symbol"),
            icon=data.get("icon"),
            reference=data.get("reference"),
            reference_hash=data.get("reference_hash"),
        )


@dataclass(frozen=True)
class TokenMetadata:
    """Metadata of a single token; times are in milliseconds."""

    class_id: ClassId
    issued_at: int | None = None
    expires_at: int | None = None
    reference: str | None = None
    reference_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, with the class under the key "class"."""
        return {
            "class": self.class_id,
            "issued_at": self.issued_at,
            "expires_at": self.expires_at,
            "reference": self.reference,
            "reference_hash": self.reference_hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TokenMetadata:
        """Build metadata from its JSON form."""
        return cls(
            class_id=data["class"],
            issued_at=data.get("issued_at"),
            expires_at=data.get("expires_at"),
            reference=data.get("reference"),
            reference_hash=data.get("reference_hash"),
        )


@dataclass
class Environment:
    """The execution context of a contract call."""

    signer_account_id: str
    predecessor_account_id: str
    current_account_id: str
    attached_deposit: int = 0
    # Block time in nanoseconds.
    block_timestamp: int = 0
    logs: list[str] = field(default_factory=list)

    @property
    def block_timestamp_ms(self) -> int:
        """Block time in milliseconds."""
        return self.block_timestamp // _NANOS_PER_MS

    def log(self, message: str) -> None:
        """Append a line to the call's log."""
        self.logs.append(message)


@dataclass(frozen=True)
class RegistryMint:
    """A scheduled `sbt_mint` call on the registry.

    `callback_external_id` is set when the oracle's mint callback follows the
    call; `refund` is an amount returned to `refund_to` alongside it.
    """

    registry: str
    token_spec: list[tuple[str, list[TokenMetadata]]]
    deposit: int
    callback_external_id: str | None = None
    refund_to: str | None = None
    refund: int = 0

    @property
    def num_tokens(self) -> int:
        """Total number of tokens the call mints."""
        return sum(len(tokens) for _, tokens in self.token_spec)

    def to_args(self) -> dict[str, Any]:
        """Return the JSON arguments of the registry call."""
        return {
            "token_spec": [
                [owner, [token.to_dict() for token in tokens]]
                for owner, tokens in self.token_spec
            ]
        }


@dataclass(frozen=True)
class RegistryRevoke:
    """A scheduled `sbt_revoke` call on the registry."""

    registry: str
    tokens: list[TokenId]
    burn: bool

    def to_args(self) -> dict[str, Any]:
        """Return the JSON arguments of the registry call."""
        return {"tokens": list(self.tokens), "burn": self.burn}


@dataclass(frozen=True)
class CallbackResult(Generic[T, E]):
    """Outcome of a callback: either an `Ok` value or an `Err` value."""

    kind: Literal["Ok", "Err"]
    payload: Any

    @classmethod
    def ok(cls, value: T) -> CallbackResult[T, E]:
        return cls("Ok", value)

    @classmethod
    def err(cls, error: E) -> CallbackResult[T, E]:
        return cls("Err", error)

    def is_ok(self) -> bool:
        return self.kind == "Ok"

    @property
    def value(self) -> T:
        """The `Ok` value; raises ValueError on an `Err` result."""
        if not self.is_ok():
            raise ValueError(f"callback failed: {self.payload}")
        return self.payload

    @property
    def error(self) -> E:
        """The `Err` value; raises ValueError on an `Ok` result."""
        if self.is_ok():
            raise ValueError("callback succeeded")
        return self.payload

    def to_json(self) -> dict[str, Any]:
        """Return the externally tagged JSON form."""
        return {self.kind: self.payload}