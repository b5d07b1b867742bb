"""Company models."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from models.customer import DocumentModel


class Company(DocumentModel):
    """Company a customer belongs to; `name` is the natural key."""

    id: str = Field(alias="_id")
    name: Optional[str] = None
    size: Optional[int] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    plan: Optional[str] = None
    last_seen_at: Optional[datetime] = None
    session_count: Optional[int] = None
    tag_ids: List[str] = Field(default_factory=list)
