"""Pydantic schemas for gateway responses."""

from pydantic import BaseModel, ConfigDict, Field

from ..core.file_gateway import DirectoryEntry


class HealthResponse(BaseModel):
    """Schema for the health check."""
    ok: bool = True
    base: str


class ErrorResponse(BaseModel):
    """Error envelope used by every non-proxied failure."""
    error: str
    detail: str | None = None


class DirectoryEntryResponse(BaseModel):
    """One file in a reference or output listing."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    size: int
    mtime_ms: float = Field(alias="mtimeMs")

    @classmethod
    def from_entry(cls, entry: DirectoryEntry) -> "DirectoryEntryResponse":
        return cls(name=entry.name, size=entry.size, mtime_ms=entry.mtime_ms)
