"""Service configuration loaded from environment variables and an optional .env file."""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    # JSON list in the environment, e.g. ALLOWED_ORIGINS='["https://example.com"]'
    allowed_origins: List[str] = ["*"]
    log_level: str = "INFO"
    rate_limit: str = "10/minute"

    page_timeout: float = 10.0
    stylesheet_timeout: float = 5.0
    request_timeout: float = 25.0
    max_stylesheets: int = 30

    cache_enabled: bool = True
    cache_ttl_seconds: int = 3600
    cache_max_entries: int = 512

    enable_name_lookup: bool = True
    sort_order: Literal["none", "asc", "desc"] = "none"
    color_properties: List[str] = ["color", "background-color", "border-color"]
    match_color_suffix: bool = False
    include_shorthand_properties: bool = False
    min_alpha: float = 0.99
    allow_hsl: bool = True
    resolve_forward_references: bool = True
    max_colors: Optional[int] = None


@lru_cache
def get_settings() -> Settings:
    return Settings()
