"""Client configuration read from the environment via python-decouple."""

from __future__ import annotations

from typing import Optional

from decouple import config
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_API_URL = "http://localhost:8000/api/v1"


class ClientSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_url: str = DEFAULT_API_URL
    timeout: float = Field(default=10.0, gt=0)
    cache_dir: Optional[str] = None

    @classmethod
    def from_env(cls) -> ClientSettings:
        return cls(
            api_url=config("DELIVERY_API_URL", default=DEFAULT_API_URL).rstrip("/"),
            timeout=config("DELIVERY_API_TIMEOUT", default=10.0, cast=float),
            cache_dir=config("DELIVERY_CACHE_DIR", default="") or None,
        )
