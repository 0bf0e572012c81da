"""Passphrase sources for archive encryption."""
from __future__ import annotations

import getpass
from typing import Optional, Protocol


class CredentialProvider(Protocol):
    def passphrase(self) -> Optional[str]:
        ...


class StaticCredentialProvider:
    """Return a fixed passphrase, used for ``-k`` and in tests."""

    def __init__(self, value: Optional[str]) -> None:
        self._value = value

    def passphrase(self) -> Optional[str]:
        return self._value


class PromptCredentialProvider:
    """Ask for the passphrase on the terminal without echoing it."""

    def __init__(self, prompt: str = "Encryption passphrase: ", *, confirm: bool = True) -> None:
        self._prompt = prompt
        self._confirm = confirm

    def passphrase(self) -> Optional[str]:
        value = getpass.getpass(self._prompt)
        if self._confirm and value:
            again = getpass.getpass("Repeat passphrase: ")
            if again != value:
                return None
        return value


__all__ = ["CredentialProvider", "PromptCredentialProvider", "StaticCredentialProvider"]
