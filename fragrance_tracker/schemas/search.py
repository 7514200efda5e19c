"""
Fragrance Tracker Backend: External Search Schemas
===================================================

What:  Normalized shape of a fragrance found through an external source,
       plus the search-subsystem health report.
"""

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

from fragrance_tracker.schemas.fragrance import FragranceNotes

SearchSource = Literal["fragrantica", "parfumo", "catalog"]


class ExternalFragrance(BaseModel):
    external_id: str
    name: str
    brand: str
    year: Optional[int] = None
    concentration: Optional[str] = None
    notes: FragranceNotes = Field(default_factory=FragranceNotes)
    image_url: Optional[str] = None
    description: Optional[str] = None
    source: SearchSource


class SearchHealth(BaseModel):
    cache: bool = Field(description="Whether the result cache is enabled")
    external_apis: Dict[str, bool] = Field(description="Reachability per external source")


class CacheClearResult(BaseModel):
    cleared: int
