"""
Result models shared by the D1 backends.

Mirrors the D1Result object D1 returns from all() and run().
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class D1Meta(BaseModel):
    """Execution metadata attached to a D1 result."""

    model_config = ConfigDict(extra="allow")

    duration: float = 0.0  # milliseconds
    changes: int = 0
    last_row_id: Optional[int] = None
    rows_read: int = 0
    rows_written: int = 0
    changed_db: bool = False
    size_after: Optional[int] = None


class D1Result(BaseModel):
    """Rows plus success flag and metadata, as returned by a backend."""

    model_config = ConfigDict(extra="allow")

    results: List[Dict[str, Any]] = Field(default_factory=list)
    success: bool = True
    meta: D1Meta = Field(default_factory=D1Meta)

    def first(self) -> Optional[Dict[str, Any]]:
        """Return the first row or None."""
        return self.results[0] if self.results else None
