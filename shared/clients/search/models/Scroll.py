from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class ScrollState(str, Enum):
    """Lifecycle of a scroll session. TERMINAL is final."""

    ACTIVE = "active"
    TERMINAL = "terminal"


class ScrollHits(BaseModel):
    """The "hits" object of a search response.

    Attributes:
        total: Server reported number of matching documents, or None if the
               backend did not report it (track_total_hits disabled).
        hits:  Per-document payloads. Only their number is used.

    Note:
        Validating a page builds Python objects for every hit, so each page is
        held twice in memory while it is parsed: once as the raw body and once
        as these objects. The objects are dropped with the envelope and never
        inspected. The sink always receives the raw body bytes.
    """

    total: int | None = None
    hits: list[Any]

    @field_validator("total", mode="before")
    @classmethod
    def _unwrap_total(cls, value: Any) -> Any:
        # ES >= 7 reports {"value": n, "relation": "eq" | "gte"}
        if isinstance(value, dict):
            return value.get("value")
        return value


class ScrollResponse(BaseModel):
    """Minimal envelope of one page of search results.

    Only the fields needed to drive the scroll are modelled, everything else
    stays in the raw body that is written to the sink.
    """

    scroll_id: str | None = Field(default=None, alias="_scroll_id")
    hits: ScrollHits

    @property
    def hit_count(self) -> int:
        return len(self.hits.hits)

    @property
    def reported_total(self) -> int | None:
        return self.hits.total
