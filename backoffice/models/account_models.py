"""Backoffice — User & Connected Meta Account Models."""

import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


def _uuid() -> str:
    return str(uuid.uuid4())


class User(SQLModel, table=True):
    """Platform user. Backoffice admins are users too."""

    __tablename__ = "users"

    id: str = Field(default_factory=_uuid, primary_key=True)
    email: str = Field(index=True, max_length=64)
    image_url: Optional[str] = None


class MetaBusinessAccount(SQLModel, table=True):
    """A user's Facebook connection, holding the long-lived Graph API token.

    Read-only from the backoffice's point of view.
    """

    __tablename__ = "meta_business_accounts"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "facebook_user_id",
            name="meta_business_accounts_user_id_facebook_user_id_unique",
        ),
    )

    id: str = Field(default_factory=_uuid, primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    facebook_user_id: str
    name: Optional[str] = None
    picture_url: Optional[str] = None
    access_token: str
    token_expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    deleted_at: Optional[datetime] = None
