import pytest

from sbt_oracle.errors import ContractPanic
from sbt_oracle.migrate import OldState, migrate
from sbt_oracle.types import ClassMetadata, ContractMetadata, Environment

CLASS_METADATA_1 = ClassMetadata(name="test_1")
CLASS_METADATA_2 = ClassMetadata(name="test_2")


def old_state():
    return OldState(
        metadata=ContractMetadata(spec="sbt", name="oracle", symbol="iah"),
        registry="registry.near",
        claim_ttl=3600 * 24 * 365 * 100,
        sbt_ttl_ms=1000,
        authority_pubkey=bytes(range(32)),
        used_identities={b"\x1a"},
        admins=["admin.near"],
    )


def test_migrate_adds_class_metadata():
    contract = migrate(old_state(), [(1, CLASS_METADATA_1), (2, CLASS_METADATA_2)])
    assert contract.sbt_class_metadata(1) == CLASS_METADATA_1
    assert contract.sbt_class_metadata(2) == CLASS_METADATA_2
    assert contract.sbt_class_metadata(3) is None


def test_migrate_keeps_old_fields():
    state = old_state()
    contract = migrate(state, [])
    assert contract.metadata == state.metadata
    assert contract.registry == "registry.near"
    assert contract.claim_ttl == 3600 * 24 * 365 * 100
    assert contract.sbt_ttl_ms == 1000
    assert contract.authority_pubkey == bytes(range(32))
    assert contract.get_admins() == ["admin.near"]
    assert contract.used_identities == {b"\x1a"}


def test_migrate_later_entry_wins():
    contract = migrate(old_state(), [(1, CLASS_METADATA_1), (1, CLASS_METADATA_2)])
    assert contract.sbt_class_metadata(1) == CLASS_METADATA_2


def test_migrated_contract_needs_environment():
    contract = migrate(old_state(), [])
    with pytest.raises(ContractPanic, match="no execution environment"):
        contract.add_admin("x.near")
    contract.env = Environment("admin.near", "admin.near", "oracle.near")
    contract.add_admin("x.near")
    assert contract.get_admins() == ["admin.near", "x.near"]
    assert contract.is_used_identity("0x1A")