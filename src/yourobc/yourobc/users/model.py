from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User (login account).

    Note: plain data object, no DB access code here.
    """

    user_id: int
    public_id: str
    full_name: str
    username: str
    password_hash: str
    role: Role
    email: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
