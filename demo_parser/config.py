from __future__ import annotations

from dataclasses import dataclass

DEFAULT_BUCKET = "demos"
DEFAULT_PORT = 8080
DEFAULT_DOWNLOAD_TIMEOUT = 120
DEFAULT_WEBHOOK_TIMEOUT = 30


@dataclass(frozen=True)
class ParserConfig:
    storage_url: str
    storage_key: str
    webhook_url: str
    webhook_secret: str
    port: int = DEFAULT_PORT
    storage_bucket: str = DEFAULT_BUCKET
    download_timeout: int = DEFAULT_DOWNLOAD_TIMEOUT
    webhook_timeout: int = DEFAULT_WEBHOOK_TIMEOUT

    @classmethod
    def from_settings(cls, settings) -> "ParserConfig":
        return cls(
            storage_url=getattr(settings, "DEMO_STORAGE_URL", ""),
            storage_key=getattr(settings, "DEMO_STORAGE_KEY", ""),
            webhook_url=getattr(settings, "DEMO_WEBHOOK_URL", ""),
            webhook_secret=getattr(settings, "DEMO_WEBHOOK_SECRET", ""),
            port=int(getattr(settings, "DEMO_PARSER_PORT", DEFAULT_PORT)),
            storage_bucket=getattr(settings, "DEMO_STORAGE_BUCKET", DEFAULT_BUCKET),
            download_timeout=int(getattr(settings, "DEMO_DOWNLOAD_TIMEOUT", DEFAULT_DOWNLOAD_TIMEOUT)),
            webhook_timeout=int(getattr(settings, "DEMO_WEBHOOK_TIMEOUT", DEFAULT_WEBHOOK_TIMEOUT)),
        )


def get_parser_config() -> ParserConfig:
    from django.apps import apps

    return apps.get_app_config("demo_parser").parser_config
