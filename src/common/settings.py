"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic._internal._model_construction import ModelMetaclass


class SettingsMeta(ModelMetaclass):
    """Let subclasses override inherited fields without repeating annotations.

    Allows overrides such as ``class Local(Settings): log_level = "DEBUG"``.
    """

    def __new__(mcls, name, bases, namespace, **kwargs):  # type: ignore[override]
        annotations = dict(namespace.get("__annotations__", {}))
        missing: dict[str, object] = {}
        for base in bases:
            inherited = getattr(base, "__annotations__", {})
            for field in namespace:
                if field in inherited and field not in annotations:
                    missing[field] = inherited[field]
        if missing:
            namespace["__annotations__"] = {**annotations, **missing}
        return super().__new__(mcls, name, bases, namespace, **kwargs)


class Settings(BaseSettings, metaclass=SettingsMeta):
    """Settings shared by every service of the journey planner."""

    otel_exporter_otlp_endpoint: str | None = Field(
        default=None, alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
        "case_sensitive": False,
    }


settings = Settings()
"""Singleton instance of :class:`Settings`."""
