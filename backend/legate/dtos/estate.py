"""Estate DTOs."""

from datetime import datetime
from typing import List, Optional

from legate.entities.estate import EstateRole

from .base import CamelModel


class EstateSummary(CamelModel):
    id: str
    label: str
    status: str
    owner_id: str
    role: EstateRole
    created_at: datetime
    updated_at: Optional[datetime] = None


class EstateResponse(CamelModel):
    ok: bool = True
    estate: EstateSummary


class EstateListResponse(CamelModel):
    ok: bool = True
    estates: List[EstateSummary]


class EstateAccessResponse(CamelModel):
    """The caller's resolved access on one estate."""

    ok: bool = True
    estate_id: str
    role: EstateRole
    is_owner: bool
    can_edit: bool
    can_view_sensitive: bool
