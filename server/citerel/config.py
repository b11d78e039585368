from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_OPENCITATIONS_URL = "https://opencitations.net/index/api/v1/metadata/"


def _env_str(name: str, default: str) -> str:
    value = (os.getenv(name) or "").strip()
    return value or default


def _env_number(name: str, default: int | float, low: int | float, high: int | float):
    """Read an int or float (the type of ``default``) and require ``low <= value <= high``."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    cast = type(default)
    try:
        value = cast(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {cast.__name__} value for {name}: {raw!r}") from e
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high} (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    log_level: str

    opencitations_url: str
    opencitations_token: str

    crossref_mailto: str
    crossref_user_agent: str

    api_timeout_seconds: float
    doi_fetch_retries: int
    expand_max_workers: int

    @classmethod
    def from_env(cls) -> "Settings":
        log_level = _env_str("CITEREL_LOG_LEVEL", "INFO")

        opencitations_url = _env_str("CITEREL_OPENCITATIONS_URL", DEFAULT_OPENCITATIONS_URL)
        if not opencitations_url.startswith(("http://", "https://")):
            raise ValueError("CITEREL_OPENCITATIONS_URL must be an http(s) URL.")
        if not opencitations_url.endswith("/"):
            opencitations_url += "/"
        opencitations_token = _env_str("CITEREL_OPENCITATIONS_TOKEN", "")

        crossref_mailto = _env_str("CITEREL_CROSSREF_MAILTO", "")
        crossref_user_agent = _env_str(
            "CITEREL_CROSSREF_USER_AGENT",
            f"citerel/0.1 (mailto:{crossref_mailto})" if crossref_mailto else "citerel/0.1",
        )

        api_timeout_seconds = _env_number("CITEREL_API_TIMEOUT_SECONDS", 20.0, 2.0, 120.0)
        doi_fetch_retries = _env_number("CITEREL_DOI_FETCH_RETRIES", 3, 1, 10)
        expand_max_workers = _env_number("CITEREL_EXPAND_MAX_WORKERS", 1, 1, 32)

        return cls(
            log_level=log_level,
            opencitations_url=opencitations_url,
            opencitations_token=opencitations_token,
            crossref_mailto=crossref_mailto,
            crossref_user_agent=crossref_user_agent,
            api_timeout_seconds=api_timeout_seconds,
            doi_fetch_retries=doi_fetch_retries,
            expand_max_workers=expand_max_workers,
        )
