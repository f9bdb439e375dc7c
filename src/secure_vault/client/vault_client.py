# Client - Vault Controller
#
# Python counterpart of the browser dashboard. It owns the encryption key for
# one session and mediates every vault field crossing the network:
#
#   login   -> derive key from the password, keep it in the KeyStore
#   list    -> fetch ciphertext, decrypt each field independently
#   add/put -> encrypt each field independently, then send
#   logout  -> destroy the key AND expire the server cookie
#
# Holding a valid server cookie is not enough to read the vault: without a
# key the client is locked and the user must log in again.

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

import httpx

from ..vault.encryption import DECRYPT_FAILED, VAULT_FIELDS, encrypt, try_decrypt
from .key_store import KeyStore, SessionKey

logger = logging.getLogger(__name__)


class VaultClientError(Exception):
    """A request to the vault server failed."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class AuthenticationError(VaultClientError):
    """Credentials were refused or the server session is gone."""


class VaultLockedError(VaultClientError):
    """No encryption key is held; log in again to unlock."""

    def __init__(self, message: str = "Vault is locked. Log in to unlock."):
        super().__init__(0, message)


@dataclass
class DecryptedEntry:
    """
    One vault entry as shown to the user.

    Fields that could not be decrypted hold "" and are named in
    `unavailable`, so they can be shown as such rather than as empty.
    """
    id: str
    title: str = ""
    username: str = ""
    password: str = ""
    url: str = ""
    notes: str = ""
    unavailable: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_complete(self) -> bool:
        return not self.unavailable


def filter_entries(entries: Iterable[DecryptedEntry], term: str) -> List[DecryptedEntry]:
    """Case-insensitive search on title and username. A blank term keeps everything."""
    entries = list(entries)
    needle = term.strip().lower()
    if not needle:
        return entries
    return [
        e for e in entries
        if needle in e.title.lower() or needle in e.username.lower()
    ]


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if isinstance(detail, str):
            return detail
        if detail is not None:
            return str(detail)
    return response.reason_phrase


class VaultClient:
    """
    Session-scoped vault controller over an httpx.AsyncClient.

    The httpx client carries the auth_token cookie between requests; the
    VaultClient carries the encryption key. Both belong to one session.
    """

    def __init__(self, http: httpx.AsyncClient, key_store: Optional[KeyStore] = None):
        self.http = http
        self.key_store = key_store or KeyStore()

    # ------------------------------------------------------------------
    # Key state
    # ------------------------------------------------------------------

    @property
    def is_locked(self) -> bool:
        return not self.key_store.has_key

    def _require_key(self) -> SessionKey:
        key = self.key_store.get()
        if key is None:
            raise VaultLockedError()
        return key

    def _still_held(self, key: SessionKey) -> SessionKey:
        """
        Re-check key after an await.

        A logout (or another login) may have run while the request was in
        flight; the response is then not decrypted at all.
        """
        if self.key_store.get() is not key:
            raise VaultLockedError()
        return key

    def _check(self, response: httpx.Response) -> Dict[str, Any]:
        """Raise for error responses; a 401 also locks the vault."""
        if response.status_code == 401:
            self.key_store.clear()
            raise AuthenticationError(401, _error_message(response))
        if response.status_code >= 400:
            raise VaultClientError(response.status_code, _error_message(response))
        return response.json()

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def signup(self, email: str, password: str) -> Dict[str, Any]:
        """Create an account. Does not log in."""
        response = await self.http.post(
            "/api/auth/signup", json={"email": email, "password": password}
        )
        return self._check(response)

    async def login(self, email: str, password: str) -> None:
        """
        Log in and unlock the vault.

        On success the server sets the identity cookie and the key derived
        from password goes into the KeyStore. On failure any held key is
        destroyed.
        """
        try:
            response = await self.http.post(
                "/api/auth/login", json={"email": email, "password": password}
            )
            self._check(response)
        except Exception:
            self.key_store.clear()
            raise
        self.key_store.put(SessionKey.from_password(password))
        logger.info("Vault unlocked")

    async def logout(self) -> None:
        """
        Lock the vault and end the server session.

        The key is destroyed even if the logout request fails; the request
        is sent even if the vault was already locked.
        """
        try:
            response = await self.http.post("/api/auth/logout")
            self._check(response)
        finally:
            self.key_store.clear()
            logger.info("Vault locked")

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def _decrypt_item(self, item: Dict[str, Any], key: SessionKey) -> DecryptedEntry:
        values = {}
        unavailable = set()
        for name in VAULT_FIELDS:
            result = try_decrypt(item.get(name, ""), key.value)
            if result.ok:
                values[name] = result.plaintext if result.plaintext is not None else ""
            else:
                logger.warning("Field %s of entry %s could not be decrypted: %s",
                               name, item.get("id"), result.reason)
                values[name] = DECRYPT_FAILED
                unavailable.add(name)
        return DecryptedEntry(id=item["id"], unavailable=frozenset(unavailable), **values)

    def _encrypt_fields(self, fields: Dict[str, Any], key: SessionKey) -> Dict[str, Any]:
        return {name: encrypt(value, key.value) for name, value in fields.items()}

    async def list_entries(self) -> List[DecryptedEntry]:
        """Fetch and decrypt every entry. A bad field never fails the whole list."""
        key = self._require_key()
        data = self._check(await self.http.get("/api/vault"))
        key = self._still_held(key)
        return [self._decrypt_item(item, key) for item in data.get("items", [])]

    async def search(self, term: str) -> List[DecryptedEntry]:
        """List entries whose title or username contains term."""
        return filter_entries(await self.list_entries(), term)

    async def add_entry(
        self,
        title: str,
        username: str,
        password: str,
        url: str = "",
        notes: str = "",
    ) -> DecryptedEntry:
        """Encrypt and store a new entry."""
        key = self._require_key()
        payload = self._encrypt_fields(
            {"title": title, "username": username, "password": password,
             "url": url, "notes": notes},
            key,
        )
        data = self._check(await self.http.post("/api/vault", json=payload))
        key = self._still_held(key)
        return self._decrypt_item(data["item"], key)

    async def update_entry(self, entry_id: str, **fields: str) -> DecryptedEntry:
        """
        Encrypt and replace the given fields of an entry.

        Raises:
            ValueError: Unknown field name
        """
        unknown = set(fields) - set(VAULT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown vault fields: {sorted(unknown)}")
        key = self._require_key()
        payload = self._encrypt_fields(fields, key)
        data = self._check(await self.http.put(f"/api/vault/{entry_id}", json=payload))
        key = self._still_held(key)
        return self._decrypt_item(data["item"], key)

    async def delete_entry(self, entry_id: str) -> None:
        """Delete an entry."""
        self._require_key()
        self._check(await self.http.delete(f"/api/vault/{entry_id}"))
