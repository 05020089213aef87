"""Event log lines of the i_am_human standard."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Iterable

STANDARD = "i_am_human"
VERSION = "1.0.0"
EVENT_PREFIX = "EVENT_JSON:"


class AccountFlag(Enum):
    """Flag an authorised flagger can put on an account."""

    BLACKLISTED = "Blacklisted"
    VERIFIED = "Verified"
    GOV_BAN = "GovBan"

    @property
    def event_name(self) -> str:
        return {
            AccountFlag.BLACKLISTED: "flag_blacklisted",
            AccountFlag.VERIFIED: "flag_verified",
            AccountFlag.GOV_BAN: "flag_govban",
        }[self]


def iah_event(event: str, data: Any) -> str:
    """Return the log line of an i_am_human event."""
    payload = {"standard": STANDARD, "version": VERSION, "event": event, "data": data}
    return EVENT_PREFIX + json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def flag_accounts_event(flag: AccountFlag, accounts: Iterable[str]) -> str:
    """Return the log line for flagging the given accounts."""
    return iah_event(flag.event_name, list(accounts))


def unflag_accounts_event(accounts: Iterable[str]) -> str:
    """Return the log line for removing flags from the given accounts."""
    return iah_event("unflag", list(accounts))


def transfer_lock_event(account: str, locked_until: int) -> str:
    """Return the log line for a transfer lock; `locked_until` is in milliseconds."""
    return iah_event("transfer_lock", {"account": account, "locked_until": locked_until})