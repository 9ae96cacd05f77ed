from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class Tracking(BaseModel):
    offre: Optional[str] = None
    support: Optional[str] = None
    event_type: Optional[str] = None
    level_2: Optional[str] = None
    event_page: Optional[str] = None
    event_chapitre1: Optional[str] = None
    event_chapitre2: Optional[str] = None
    model_config = {"extra": "allow"}


class VideoData(BaseModel):
    """Entrada de `FTVPlayerVideos` embebida en la página de un episodio."""

    contentId: int = 0
    videoId: str = Field(min_length=1)
    videoTitle: str = ""
    programName: str = ""
    originUrl: Any = None  # A veces string, a veces null
    endDate: Optional[datetime] = None
    seasonNumber: Optional[int] = None
    isSponsored: bool = False
    isAdVisible: Any = None
    tracking: Optional[Tracking] = None

    model_config = {"extra": "allow", "frozen": True}

    @field_validator("videoTitle", "programName", mode="before")
    @classmethod
    def _null_as_empty(cls, v):
        return "" if v is None else v

    @field_validator("isSponsored", mode="before")
    @classmethod
    def _null_as_false(cls, v):
        return False if v is None else v

    @property
    def origin_path(self) -> str:
        return self.originUrl if isinstance(self.originUrl, str) else ""
