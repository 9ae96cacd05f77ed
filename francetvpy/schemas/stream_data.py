from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, field_validator


class Token(BaseModel):
    akamai: str = ""
    model_config = {"extra": "allow"}


class Video(BaseModel):
    url: str = ""
    # Versiones viejas de la API devuelven un string, las nuevas {"akamai": ...}
    token: Union[str, Token, None] = None
    format: str = ""
    workflow: Any = None
    duration: Optional[int] = None
    embed: bool = False
    is_live: bool = False
    drm: Any = None
    drm_type: Any = None
    license_type: Any = None
    captions: List[Any] = []
    model_config = {"extra": "allow"}

    @field_validator("url", "format", mode="before")
    @classmethod
    def _null_as_empty(cls, v):
        return "" if v is None else v

    @property
    def token_url(self) -> str:
        if isinstance(self.token, Token):
            return self.token.akamai
        return self.token or ""


class Meta(BaseModel):
    id: Optional[str] = None
    title: str = ""
    pre_title: str = ""
    additional_title: str = ""
    broadcasted_at: Optional[datetime] = None
    image_url: Optional[str] = None
    model_config = {"extra": "allow"}

    # La API manda null en los títulos que no aplican (ej: pre_title de una película)
    @field_validator("title", "pre_title", "additional_title", mode="before")
    @classmethod
    def _null_as_empty(cls, v):
        return "" if v is None else v


class StreamData(BaseModel):
    """
    Respuesta de la API de lectura.
    Un solo esquema con todos los campos opcionales: la forma de la respuesta
    ha cambiado varias veces y solo usamos `video` y `meta`.
    """

    video: Video
    meta: Meta = Meta()
    markers: Optional[dict] = None
    model_config = {"extra": "allow"}

    @field_validator("meta", mode="before")
    @classmethod
    def _null_meta(cls, v):
        return {} if v is None else v
