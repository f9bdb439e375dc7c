# Client - Session Key Lifecycle
#
# The encryption key exists only inside a KeyStore held by one client
# session (the equivalent of a browser tab). It is never written to disk,
# never sent to the server, and is destroyed on logout or failed login.

from typing import Optional

from ..vault.encryption import derive_encryption_key


class KeyDestroyedError(RuntimeError):
    """Raised when a destroyed SessionKey is used."""


class SessionKey:
    """
    Password-derived encryption key with an explicit destroy().

    The key string is not shown by repr() and cannot be read back once
    destroyed.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str):
        if not value:
            raise ValueError("Encryption key must not be empty")
        self._value: Optional[str] = value

    @classmethod
    def from_password(cls, password: str) -> "SessionKey":
        """Derive the key from a login password."""
        return cls(derive_encryption_key(password))

    @property
    def value(self) -> str:
        if self._value is None:
            raise KeyDestroyedError("Encryption key has been destroyed")
        return self._value

    @property
    def is_destroyed(self) -> bool:
        return self._value is None

    def destroy(self) -> None:
        """Drop the key material. Safe to call more than once."""
        self._value = None

    def __repr__(self) -> str:
        state = "destroyed" if self._value is None else "active"
        return f"<SessionKey {state}>"


class KeyStore:
    """Tab-scoped, in-memory holder for at most one SessionKey."""

    def __init__(self):
        self._key: Optional[SessionKey] = None

    def put(self, key: SessionKey) -> None:
        """Store key, destroying any key held before."""
        if self._key is not None and self._key is not key:
            self._key.destroy()
        self._key = key

    def get(self) -> Optional[SessionKey]:
        if self._key is not None and self._key.is_destroyed:
            self._key = None
        return self._key

    def clear(self) -> None:
        """Destroy and forget the held key, if any."""
        if self._key is not None:
            self._key.destroy()
        self._key = None

    @property
    def has_key(self) -> bool:
        return self.get() is not None
