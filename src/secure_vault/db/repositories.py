"""
Data access objects (repositories) for accounts and vault entries.

Every vault entry query is filtered by the owning account id. There is no
method that reads, changes or removes an entry by its id alone.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import asyncpg

from ..vault.encryption import VAULT_FIELDS
from .connection import affected_rows

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = "id, account_id, title, username, password, url, notes, created_at, updated_at"


class AccountExistsError(Exception):
    """Raised when signing up with an email that is already registered."""


class AccountRepository:
    """Account data access object."""

    def __init__(self, db):
        """Initialize with database instance."""
        self.db = db

    async def create(self, email: str, password_hash: str) -> Dict[str, Any]:
        """
        Create a new account.

        Returns:
            The created account record

        Raises:
            AccountExistsError: If the email is already registered
        """
        account_id = str(uuid.uuid4())
        try:
            row = await self.db.fetchrow(
                """
                INSERT INTO accounts (id, email, password_hash, created_at)
                VALUES ($1, $2, $3, $4)
                RETURNING id, email, password_hash, created_at
                """,
                account_id,
                email,
                password_hash,
                datetime.now(timezone.utc),
            )
        except asyncpg.UniqueViolationError:
            raise AccountExistsError(email) from None

        logger.info("Account created: %s", account_id)
        return dict(row)

    async def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Get account by exact (case-sensitive) email."""
        row = await self.db.fetchrow(
            "SELECT id, email, password_hash, created_at FROM accounts WHERE email = $1",
            email,
        )
        return dict(row) if row else None


class VaultEntryRepository:
    """Vault entry data access object, scoped by account."""

    def __init__(self, db):
        """Initialize with database instance."""
        self.db = db

    async def list_for_account(self, account_id: str) -> List[Dict[str, Any]]:
        """List every entry owned by account_id, oldest first."""
        rows = await self.db.fetch(
            f"SELECT {_ENTRY_COLUMNS} FROM vault_entries "
            "WHERE account_id = $1 ORDER BY created_at, id",
            account_id,
        )
        return [dict(r) for r in rows]

    async def create(
        self,
        account_id: str,
        title: str,
        username: str,
        password: str,
        url: str = "",
        notes: str = "",
    ) -> Dict[str, Any]:
        """Create an entry owned by account_id and return it."""
        entry_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        row = await self.db.fetchrow(
            f"""
            INSERT INTO vault_entries
            (id, account_id, title, username, password, url, notes, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $8)
            RETURNING {_ENTRY_COLUMNS}
            """,
            entry_id,
            account_id,
            title,
            username,
            password,
            url,
            notes,
            now,
        )
        return dict(row)

    async def update(
        self,
        entry_id: str,
        account_id: str,
        fields: Dict[str, str],
    ) -> Optional[Dict[str, Any]]:
        """
        Replace the given fields of one entry.

        Args:
            entry_id: Entry to update
            account_id: Caller's account; the entry must belong to it
            fields: Subset of VAULT_FIELDS -> new ciphertext

        Returns:
            The updated record, or None if no entry matched {entry_id, account_id}
        """
        unknown = set(fields) - set(VAULT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown vault fields: {sorted(unknown)}")
        if not fields:
            raise ValueError("No fields to update")

        # Column names in the SET clause come from VAULT_FIELDS only
        columns = [name for name in VAULT_FIELDS if name in fields]
        assignments = ", ".join(f"{name} = ${i}" for i, name in enumerate(columns, start=4))
        row = await self.db.fetchrow(
            f"""
            UPDATE vault_entries
            SET {assignments}, updated_at = $3
            WHERE id = $1 AND account_id = $2
            RETURNING {_ENTRY_COLUMNS}
            """,
            entry_id,
            account_id,
            datetime.now(timezone.utc),
            *[fields[name] for name in columns],
        )
        return dict(row) if row else None

    async def delete(self, entry_id: str, account_id: str) -> bool:
        """Delete one entry. Returns False if no entry matched {entry_id, account_id}."""
        result = await self.db.execute(
            "DELETE FROM vault_entries WHERE id = $1 AND account_id = $2",
            entry_id,
            account_id,
        )
        return affected_rows(result) > 0


class RepositoryFactory:
    """Factory for creating repository instances."""

    def __init__(self, db):
        """Initialize with database instance."""
        self.db = db
        self._accounts = None
        self._vault_entries = None

    @property
    def accounts(self) -> AccountRepository:
        """Get account repository (lazy singleton)."""
        if not self._accounts:
            self._accounts = AccountRepository(self.db)
        return self._accounts

    @property
    def vault_entries(self) -> VaultEntryRepository:
        """Get vault entry repository (lazy singleton)."""
        if not self._vault_entries:
            self._vault_entries = VaultEntryRepository(self.db)
        return self._vault_entries
