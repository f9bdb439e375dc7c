# Vault API - CRUD endpoints for encrypted vault entries
#
# GET    /api/vault        list the caller's entries
# POST   /api/vault        add an entry
# PUT    /api/vault/{id}   replace some fields of an entry
# DELETE /api/vault/{id}   remove an entry
#
# Field values are client-side ciphertext; the server stores and returns them
# verbatim. Every store call is keyed by the account id from the verified
# identity token, so an entry owned by another account behaves exactly like
# an entry that does not exist (404).

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from ..core import EventType, get_audit_logger
from ..db import VAULT_FIELDS, RepositoryFactory
from .security import AccountIdentity, get_current_account, get_repositories

router = APIRouter(prefix="/api/vault", tags=["vault"])

NOT_FOUND = "Item not found or user not authorized."


# Request/Response Models
class AddEntryRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    url: str = ""
    notes: str = ""


class UpdateEntryRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None
    notes: Optional[str] = None


class VaultEntryResponse(BaseModel):
    id: str
    title: str
    username: str
    password: str
    url: str
    notes: str
    created_at: datetime
    updated_at: datetime


class VaultEntryListResponse(BaseModel):
    items: List[VaultEntryResponse]


class VaultEntryMutationResponse(BaseModel):
    message: str
    item: VaultEntryResponse


# Endpoints

@router.get("", response_model=VaultEntryListResponse)
async def list_entries(
    account: AccountIdentity = Depends(get_current_account),
    repos: RepositoryFactory = Depends(get_repositories),
):
    """List every entry owned by the caller (ciphertext only)."""
    items = await repos.vault_entries.list_for_account(account.account_id)
    return {"items": items}


@router.post(
    "",
    response_model=VaultEntryMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_entry(
    payload: AddEntryRequest,
    account: AccountIdentity = Depends(get_current_account),
    repos: RepositoryFactory = Depends(get_repositories),
):
    """
    Add an entry owned by the caller.

    title, username and password are required; url and notes default to "".
    """
    item = await repos.vault_entries.create(
        account_id=account.account_id,
        title=payload.title,
        username=payload.username,
        password=payload.password,
        url=payload.url,
        notes=payload.notes,
    )

    get_audit_logger().log_vault_event(
        EventType.VAULT_ENTRY_ADDED,
        "entry added",
        account_id=account.account_id,
        entry_id=item["id"],
    )
    return {"message": "Item added successfully!", "item": item}


@router.put("/{entry_id}", response_model=VaultEntryMutationResponse)
async def update_entry(
    entry_id: str,
    payload: UpdateEntryRequest,
    account: AccountIdentity = Depends(get_current_account),
    repos: RepositoryFactory = Depends(get_repositories),
):
    """
    Replace any subset of an entry's fields.

    Fields left out of the body (or sent as null) keep their value. A body
    where no field carries a value is rejected with 400.
    """
    fields = payload.model_dump(exclude_none=True)
    if not any(fields.get(name) for name in VAULT_FIELDS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update.",
        )

    item = await repos.vault_entries.update(entry_id, account.account_id, fields)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)

    get_audit_logger().log_vault_event(
        EventType.VAULT_ENTRY_UPDATED,
        "entry updated",
        account_id=account.account_id,
        entry_id=entry_id,
    )
    return {"message": "Item updated successfully!", "item": item}


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    account: AccountIdentity = Depends(get_current_account),
    repos: RepositoryFactory = Depends(get_repositories),
):
    """Delete one of the caller's entries."""
    deleted = await repos.vault_entries.delete(entry_id, account.account_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)

    get_audit_logger().log_vault_event(
        EventType.VAULT_ENTRY_DELETED,
        "entry deleted",
        account_id=account.account_id,
        entry_id=entry_id,
    )
    return {"message": "Item deleted successfully."}
