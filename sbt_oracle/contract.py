"""The oracle contract that turns authority-signed claims into soulbound tokens."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .claim import (
    Claim,
    b64_decode,
    is_supported_account,
    normalize_external_id,
    pubkey_from_b64,
    verify_claim,
)
from .errors import BadRequest, BorshError, ContractPanic, DuplicatedId
from .types import (
    CLASS_FV_SBT,
    CLASS_KYC_SBT,
    ELECTIONS_END,
    ELECTIONS_START,
    MINT_TOTAL_COST,
    MINT_TOTAL_COST_WITH_KYC,
    CallbackResult,
    ClassId,
    ClassMetadata,
    ContractMetadata,
    Environment,
    RegistryMint,
    RegistryRevoke,
    TokenId,
    TokenMetadata,
    mint_deposit,
)

DEFAULT_CLAIM_TTL = 3600 * 24  # one day, in seconds
DEFAULT_SBT_TTL_MS = 1000 * 3600 * 24 * 548  # about 1.5 years
PRODUCTION_SUFFIX = "i-am-human.near"


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ContractPanic(message)


@dataclass
class Contract:
    """State and calls of the SBT oracle.

    `env` is the context of the call being executed; replace or mutate it
    between calls to simulate new transactions.
    """

    metadata: ContractMetadata
    registry: str
    # Maximum age, in seconds, of a claim accepted for minting.
    claim_ttl: int
    # Lifetime of a minted token, in milliseconds.
    sbt_ttl_ms: int
    authority_pubkey: bytes
    used_identities: set[bytes] = field(default_factory=set)
    admins: list[str] = field(default_factory=list)
    class_metadata: dict[ClassId, ClassMetadata] = field(default_factory=dict)
    env: Environment | None = field(default=None, repr=False, compare=False)

    @classmethod
    def new(
        cls,
        env: Environment,
        authority: str,
        metadata: ContractMetadata,
        registry: str,
        claim_ttl: int,
        admin: str,
    ) -> Contract:
        """Create the contract; a zero `claim_ttl` means one day."""
        contract = cls(
            metadata=metadata,
            registry=registry,
            claim_ttl=claim_ttl or DEFAULT_CLAIM_TTL,
            sbt_ttl_ms=DEFAULT_SBT_TTL_MS,
            authority_pubkey=pubkey_from_b64(authority),
            env=env,
        )
        contract._insert_admin(admin)
        return contract

    # ----- internal helpers -------------------------------------------------

    @property
    def _ctx(self) -> Environment:
        if self.env is None:
            raise ContractPanic("contract has no execution environment")
        return self.env

    def _insert_admin(self, admin: str) -> None:
        if admin not in self.admins:
            self.admins.append(admin)

    def _remove_admin(self, admin: str) -> None:
        # Swap-remove: the last admin takes the place of the removed one.
        try:
            index = self.admins.index(admin)
        except ValueError:
            return
        last = self.admins.pop()
        if index < len(self.admins):
            self.admins[index] = last

    def _assert_admin(self) -> None:
        _require(self._ctx.predecessor_account_id in self.admins, "not an admin")

    # ----- queries ----------------------------------------------------------

    def get_admins(self) -> list[str]:
        """Return the admin accounts."""
        return list(self.admins)

    @staticmethod
    def required_sbt_mint_deposit(is_verified_kyc: bool) -> int:
        """Return the storage deposit a claim mint needs."""
        return MINT_TOTAL_COST_WITH_KYC if is_verified_kyc else MINT_TOTAL_COST

    def is_used_identity(self, external_id: str) -> bool:
        """Return whether the external id was already used to mint an SBT."""
        try:
            normalized = normalize_external_id(external_id)
        except BadRequest as exc:
            raise ContractPanic("failed to normalize id") from exc
        return normalized in self.used_identities

    def sbt_metadata(self) -> ContractMetadata:
        """Return the contract metadata."""
        return self.metadata

    def sbt_class_metadata(self, class_id: ClassId) -> ClassMetadata | None:
        """Return the metadata of a class, or None if it is not set."""
        return self.class_metadata.get(class_id)

    # ----- calls ------------------------------------------------------------

    def sbt_mint(self, claim_b64: str, claim_sig: str, memo: str | None = None) -> RegistryMint:
        """Validate a signed claim and schedule the mint of the signer's SBTs.

        `claim_b64` is the standard base64 of the borsh claim, `claim_sig` the
        standard base64 of the authority's ed25519 signature over those bytes.
        """
        env = self._ctx
        now_ms = env.block_timestamp_ms
        if (
            env.current_account_id.endswith(PRODUCTION_SUFFIX)
            and ELECTIONS_START < now_ms <= ELECTIONS_END
        ):
            raise BadRequest("IAH SBT cannot be mint during the elections period")

        user = env.signer_account_id
        if not is_supported_account(user, env.current_account_id):
            raise BadRequest("only root and implicit accounts are allowed to get SBT")

        claim_bytes = b64_decode("claim_b64", claim_b64)
        try:
            claim = Claim.from_bytes(claim_bytes)
        except BorshError as exc:
            raise BorshError("claim") from exc
        signature = b64_decode("claim_sig", claim_sig)
        verify_claim(signature, claim_bytes, self.authority_pubkey)

        storage_deposit = self.required_sbt_mint_deposit(claim.verified_kyc)
        _require(
            env.attached_deposit >= storage_deposit,
            f"Requires attached deposit at least {storage_deposit} yoctoNEAR",
        )

        now = now_ms // 1000
        if claim.timestamp > now:
            raise BadRequest("claim.timestamp in the future")
        if now >= claim.timestamp + self.claim_ttl:
            raise BadRequest("claim expired")
        if claim.claimer != user:
            raise BadRequest("claimer is not the transaction signer")

        external_id = normalize_external_id(claim.external_id)
        if external_id in self.used_identities:
            raise DuplicatedId("external_id")

        classes = [CLASS_FV_SBT, CLASS_KYC_SBT] if claim.verified_kyc else [CLASS_FV_SBT]
        tokens = [
            TokenMetadata(
                class_id=class_id,
                issued_at=now_ms,
                expires_at=now_ms + self.sbt_ttl_ms,
            )
            for class_id in classes
        ]

        self.used_identities.add(external_id)
        if memo is not None:
            env.log(f"SBT mint memo: {memo}")

        return RegistryMint(
            registry=self.registry,
            token_spec=[(claim.claimer, tokens)],
            deposit=storage_deposit,
            callback_external_id=external_id.hex(),
        )

    def sbt_mint_callback(
        self, external_id: str, last_result: CallbackResult[list[TokenId], str]
    ) -> CallbackResult[TokenId, str]:
        """Handle the registry's mint result; on failure free the external id again."""
        if last_result.is_ok():
            return CallbackResult.ok(last_result.value[0])
        self.used_identities.discard(bytes.fromhex(external_id))
        return CallbackResult.err("registry.sbt_mint failed")

    def sbt_revoke(self, tokens: Iterable[TokenId], burn: bool) -> RegistryRevoke:
        """Schedule revocation of tokens on the registry; admins only."""
        self._assert_admin()
        return RegistryRevoke(registry=self.registry, tokens=list(tokens), burn=burn)

    def admin_change_authority(self, authority: str) -> None:
        """Replace the public key that verifies claim signatures; admins only."""
        self._assert_admin()
        self.authority_pubkey = pubkey_from_b64(authority)

    def add_admin(self, admin: str) -> None:
        """Add an admin; admins only."""
        self._assert_admin()
        self._insert_admin(admin)

    def remove_admin(self, admin: str) -> None:
        """Remove an admin; admins only."""
        self._assert_admin()
        self._remove_admin(admin)

    def set_class_metadata(self, class_id: ClassId, metadata: ClassMetadata) -> None:
        """Set the metadata of class 1 or 2; admins only."""
        self._assert_admin()
        if class_id not in (CLASS_FV_SBT, CLASS_KYC_SBT):
            raise BadRequest("class not found")
        self.class_metadata[class_id] = metadata

    def admin_mint(
        self,
        mint_data: Iterable[tuple[str, int]],
        class_id: ClassId,
        memo: str | None = None,
    ) -> RegistryMint:
        """Schedule a mint of one token of `class_id` per `(recipient, expires_at_ms)`.

        Admins only. Any deposit above the required one is refunded to the caller.
        """
        self._assert_admin()
        env = self._ctx
        entries = list(mint_data)
        deposit = env.attached_deposit
        required_deposit = mint_deposit(len(entries))
        _require(
            deposit >= required_deposit,
            f"Requires min {required_deposit}yoctoNEAR storage deposit",
        )
        _require(
            class_id in (CLASS_FV_SBT, CLASS_KYC_SBT),
            "wrong request, class must be either 1 (FV) or 2 (KYC)",
        )

        refund = deposit - required_deposit
        now = env.block_timestamp_ms
        token_spec = [
            (account, [TokenMetadata(class_id=class_id, issued_at=now, expires_at=expires_at)])
            for account, expires_at in entries
        ]

        if memo is not None:
            env.log(f"SBT mint memo: {memo}")

        return RegistryMint(
            registry=self.registry,
            token_spec=token_spec,
            deposit=required_deposit,
            refund_to=env.predecessor_account_id if refund > 0 else None,
            refund=refund if refund > 0 else 0,
        )