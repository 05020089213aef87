# sbt_oracle

An oracle for soul-bound tokens (SBTs). A user presents an identity claim
signed by a trusted authority. The oracle checks the signature, the claim's
age, the signer's account and whether the external identity was used before.
When every check passes, it builds a mint request for the SBT registry.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `sbt_oracle.claim`: the frozen `Claim` record (`claimer`, `external_id`,
  `timestamp` in seconds, `verified_kyc`) with its borsh encoding:
  `Claim.to_bytes`, `Claim.from_bytes`, `Claim.to_b64`, `Claim.from_b64`.
  It also provides these helpers:
  - `normalize_external_id` decodes a hex id, with or without `0x`, and
    ignores case.
  - `b64_decode` decodes strict standard base64.
  - `pubkey_from_b64` decodes a 32-byte public key.
  - `ed25519_verify` returns a bool.
  - `verify_claim` raises on a bad signature.
  - `is_supported_account` accepts root accounts, and implicit accounts when
    the current account ends in `.near` or `.testnet`.
- `sbt_oracle.contract`: the `Contract` state and its calls:
  - minting: `sbt_mint`, `sbt_mint_callback`, `admin_mint` and `sbt_revoke`;
  - admin management: `add_admin`, `remove_admin`, `get_admins` and
    `admin_change_authority`;
  - metadata: `set_class_metadata`, `sbt_metadata` and `sbt_class_metadata`;
  - other queries: `is_used_identity` and `required_sbt_mint_deposit`.
- `sbt_oracle.types`: the supporting types and constants:
  - the records `ContractMetadata`, `ClassMetadata` and `TokenMetadata`,
    each with `to_dict` and `from_dict`;
  - the call context `Environment`, with timestamps in nanoseconds and a
    `logs` list;
  - the call descriptions `RegistryMint` and `RegistryRevoke`;
  - `CallbackResult`;
  - `mint_deposit` and the constants `CLASS_FV_SBT`, `CLASS_KYC_SBT`,
    `MINT_COST`, `MINT_TOTAL_COST` and `MINT_TOTAL_COST_WITH_KYC`.
- `sbt_oracle.errors`: the exceptions, all subclasses of `ContractError`:
  - `BadRequest`, `DuplicatedId` and `SignatureError`;
  - `BorshError` and `Base64DecodeError`;
  - `ContractPanic`, raised for failed requirements such as a missing
    deposit or a caller who is not an admin;
  - `RegistryError`, `NotHumanError` and `TransferLockedError`.
- `sbt_oracle.events`: `AccountFlag`, `iah_event`, `flag_accounts_event`,
  `unflag_accounts_event` and `transfer_lock_event`. Each returns an
  `EVENT_JSON:` log line of the `i_am_human` standard.
- `sbt_oracle.migrate`: `migrate` turns an `OldState` and a list of
  `(class_id, ClassMetadata)` pairs into a current `Contract`.

## Example

```python
import base64

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from sbt_oracle.claim import Claim
from sbt_oracle.contract import Contract
from sbt_oracle.types import CallbackResult, ContractMetadata, Environment, MINT_TOTAL_COST

signing_key = Ed25519PrivateKey.generate()
authority = base64.b64encode(
    signing_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
).decode()

env = Environment(
    signer_account_id="alice.near",
    predecessor_account_id="alice.near",
    current_account_id="oracle.near",
    attached_deposit=MINT_TOTAL_COST,
    block_timestamp=1_700_000_000 * 10**9,
)
contract = Contract.new(
    env, authority, ContractMetadata(spec="sbt", name="oracle", symbol="iah"),
    "registry.near", 0, "admin.near",
)

claim = Claim("alice.near", "0x1a", 1_700_000_000, False)
claim_sig = base64.b64encode(signing_key.sign(claim.to_bytes())).decode()

mint = contract.sbt_mint(claim.to_b64(), claim_sig)
assert mint.num_tokens == 1 and mint.deposit == MINT_TOTAL_COST
assert contract.is_used_identity("0x1A")

# If the registry reports a failure, the identity is freed again.
contract.sbt_mint_callback(mint.callback_external_id, CallbackResult.err("failed"))
assert not contract.is_used_identity("0x1a")
```

`sbt_mint` raises `BadRequest` in these cases:

- the claim is expired or dated in the future;
- the claimer is not the signer;
- the signer is neither a root account nor an implicit account;
- the call falls in the elections period on an `i-am-human.near` account.

It raises `DuplicatedId` for an external identity that was already used, and
`SignatureError` for a bad signature. An insufficient deposit raises
`ContractPanic`.

## What it does not do

The package holds the contract's state and rules in memory. It does not run
on a blockchain, store state persistently or talk to a registry. Calls such as
`sbt_mint`, `admin_mint` and `sbt_revoke` return `RegistryMint` or
`RegistryRevoke` descriptions; the caller forwards them and feeds the outcome
back through `sbt_mint_callback`. No command-line tool is provided.