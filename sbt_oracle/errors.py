"""Errors reported by the oracle and registry contracts."""

from __future__ import annotations


class ContractError(Exception):
    """Base class for every error a contract call reports."""


class BorshError(ContractError):
    """A value could not be decoded from its borsh bytes."""

    def __init__(self, what: str) -> None:
        self.what = what
        super().__init__(f"can't borsh-decode {what}")


class Base64DecodeError(ContractError):
    """A call argument is not valid standard base64."""

    def __init__(self, arg: str, err: Exception | None = None) -> None:
        self.arg = arg
        self.err = err
        super().__init__(f"can't base64-decode {arg}")


class BadRequest(ContractError):
    """The request is malformed or not allowed in the current state."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class DuplicatedId(ContractError):
    """An identity that must be unique was already used."""

    def __init__(self, id_name: str) -> None:
        self.id_name = id_name
        super().__init__(f"duplicated id: {id_name}")


class SignatureError(ContractError):
    """A signature could not be verified."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"signature error: {detail}")


class RegistryError(ContractError):
    """A call to the SBT registry failed."""

    def __init__(self) -> None:
        super().__init__("registry operation failed")


class ContractPanic(ContractError):
    """An unrecoverable failure such as a failed requirement."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotHumanError(ContractError):
    """The caller holds no proof of being a human."""

    def __init__(self) -> None:
        super().__init__("caller is not a human")


class TransferLockedError(ContractError):
    """A soul transfer was attempted while the owner holds a transfer lock."""

    def __init__(self) -> None:
        super().__init__("soul transfer not possible: owner has a transfer lock")