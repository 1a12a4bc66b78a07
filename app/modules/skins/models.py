"""Domain models for skins."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

# Upper bound on skins a single account may own at the same time.
MAX_SKINS_PER_USER = 10


@dataclass(slots=True)
class Skin:
    id: str
    owner_id: str
    display_name: str
    storage_key: str
    created_at: datetime
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class SkinContent:
    skin: Skin
    content_type: str
    data: bytes = field(repr=False)
