from __future__ import annotations

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Map Assist"
    enabled: bool = True
    log_level: str = "INFO"

    source_crs: str = "EPSG:4326"
    planar_crs: str = "EPSG:3857"  # host editor default projection

    search_radius_m: float = 50.0
    corridor_half_width_factor: float = 3.5   # x polygon width
    corridor_half_length_factor: float = 0.5  # x polygon length
    collinearity_tolerance: float = 0.10      # x |A-B| for diff == 2
    name_charset: str = r"[A-Za-z0-9-]+"
    min_rectangle_points: int = 3

    model_config = SettingsConfigDict(env_prefix="MAPASSIST_")

    @field_validator("search_radius_m", "corridor_half_width_factor", "corridor_half_length_factor")
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("collinearity_tolerance")
    @classmethod
    def must_be_ratio(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError("must be between 0 and 1")
        return v

    @field_validator("log_level")
    @classmethod
    def must_be_known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{v}'")
        return level


settings = Settings()


def configure_logging(cfg: Settings | None = None) -> logging.Logger:
    """Attach a stream handler to the ``mapassist`` logger tree.

    Calling it twice does not stack handlers.
    """
    cfg = cfg or settings
    root = logging.getLogger("mapassist")
    root.setLevel(cfg.log_level)
    if not any(getattr(h, "_mapassist", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s"))
        handler._mapassist = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
