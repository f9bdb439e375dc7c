"""
Database module for Secure Vault.

Provides PostgreSQL connectivity (lazy, shared asyncpg pool) and repositories
for accounts and vault entries.

Usage:
    db = Database(settings.database_url)
    repos = RepositoryFactory(db)

    account = await repos.accounts.create("a@x.com", password_hash)
    entries = await repos.vault_entries.list_for_account(account["id"])

    await db.close()
"""

from .connection import (
    Database,
    affected_rows,
    initialize_schema,
)
from .repositories import (
    VAULT_FIELDS,
    AccountExistsError,
    AccountRepository,
    RepositoryFactory,
    VaultEntryRepository,
)

__all__ = [
    "Database",
    "affected_rows",
    "initialize_schema",
    "VAULT_FIELDS",
    "AccountExistsError",
    "AccountRepository",
    "VaultEntryRepository",
    "RepositoryFactory",
]
