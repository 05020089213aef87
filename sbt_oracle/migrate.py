"""Upgrade of stored oracle state that predates class metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .contract import Contract
from .types import ClassId, ClassMetadata, ContractMetadata


@dataclass
class OldState:
    """Oracle state as stored before class metadata was introduced."""

    metadata: ContractMetadata
    registry: str
    claim_ttl: int
    sbt_ttl_ms: int
    authority_pubkey: bytes
    used_identities: set[bytes] = field(default_factory=set)
    admins: list[str] = field(default_factory=list)


def migrate(
    old_state: OldState, class_metadata: Iterable[tuple[ClassId, ClassMetadata]]
) -> Contract:
    """Build the current contract state from the old one plus class metadata.

    Later entries for the same class replace earlier ones. The returned
    contract has no environment set.
    """
    return Contract(
        metadata=old_state.metadata,
        registry=old_state.registry,
        claim_ttl=old_state.claim_ttl,
        sbt_ttl_ms=old_state.sbt_ttl_ms,
        authority_pubkey=old_state.authority_pubkey,
        used_identities=set(old_state.used_identities),
        admins=list(old_state.admins),
        class_metadata=dict(class_metadata),
    )