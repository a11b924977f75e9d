from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SpotSubmission(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    category: str = Field(min_length=1, max_length=32)
    gps_accuracy_m: float | None = Field(default=None, ge=0.0)
    is_mock_location: bool = False
    photo_hash: str | None = Field(default=None, min_length=1, max_length=128)
    exif_taken_at: datetime | None = None
    exif_latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    exif_longitude: float | None = Field(default=None, ge=-180.0, le=180.0)
