"""Schema for the embedding backfill endpoint."""

from __future__ import annotations

from pydantic import BaseModel


class ReindexResponse(BaseModel):
    indexed: int
    failed: int
    has_more: bool
