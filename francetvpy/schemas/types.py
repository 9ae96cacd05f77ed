from enum import Enum
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field


class StreamFormat(str, Enum):
    HLS = "hls"  # m3u8 -> .mp4
    DASH = "dash"  # mpd -> .mkv

    @property
    def extension(self) -> str:
        return ".mp4" if self is StreamFormat.HLS else ".mkv"


class PageSchema(BaseModel):
    """
    Selectores y marcadores del HTML de france.tv.
    El sitio cambia a menudo, por eso todo esto es configuración y no código.
    """

    site_url: str = "https://www.france.tv"
    player_script_selector: str = "div > div.l-column-left > script"
    player_prefixes: List[str] = ["window.FTVPlayerVideos", "let FTVPlayerVideos"]
    card_selector: str = "a.c-card-16x9"
    card_label_selector: str = ".c-card-16x9__subtitle"
    collection_markers: List[str] = ["replay-videos", "toutes-les-videos"]

    model_config = {"frozen": True}


class RunConfig(BaseModel):
    mode: StreamFormat = StreamFormat.DASH
    download_all: bool = False
    subs_only: bool = False
    debug: bool = False
    output_dir: Path = Field(default_factory=Path.cwd)
    workers: int = Field(default=4, ge=1)
    max_pages: int = Field(default=50, ge=1)
    timeout: float = Field(default=30.0, gt=0)
    sanitize_filenames: bool = False
    ascii_filenames: bool = False
    page_schema: PageSchema = Field(default_factory=PageSchema)

    model_config = {"frozen": True}


class Job(BaseModel):
    url: str
    dest_dir: Path
    filename: str
    format: StreamFormat
    subs_only: bool = False

    @property
    def output_path(self) -> Path:
        return self.dest_dir / f"{self.filename}{self.format.extension}"
