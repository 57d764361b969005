"""
# Configuration Management Module

This module provides the configuration system for the SKU catalog core. It is built on
**Pydantic Settings** and loads values from the environment and an optional config file.
Every value is validated at import time.

## Configuration Loading Hierarchy

```
┌─────────────────────────────────────────────────────────────┐
│  1. Environment Variables (HIGHEST PRIORITY)                │
├─────────────────────────────────────────────────────────────┤
│  2. SKU_CATALOG_CONFIG_PATH                                 │
│     - Custom config file path from env var                  │
├─────────────────────────────────────────────────────────────┤
│  3. .skucatalog File (Project Root)                         │
├─────────────────────────────────────────────────────────────┤
│  4. .env File (Project Root)                                │
├─────────────────────────────────────────────────────────────┤
│  5. Default Values (LOWEST PRIORITY)                        │
└─────────────────────────────────────────────────────────────┘
```

## Configuration Groups

### Admin API
```python
API_BASE_URL: str = "http://localhost:8000"  # Admin backend origin
ADMIN_ROUTE: str = "admin"  # Path segment: {API_BASE_URL}/api/{ADMIN_ROUTE}/...
API_TOKEN: Optional[SecretStr] = None  # Bearer token, sent when set
REQUEST_TIMEOUT_SECONDS: float = 30.0
```

### Paging & Search
```python
FAMILY_PAGE_SIZE: int = 10  # Top-level family table
CHILD_PAGE_SIZE: int = 5  # Sub-families shown per expanded row
FAMILY_SEARCH_DEBOUNCE_MS: int = 1000
CHILD_SEARCH_DEBOUNCE_MS: int = 500
```

### Master Data
```python
REFERENCE_SNAPSHOT_LIMIT: int = 1000  # Entities fetched per type for local matching
REFRESH_CODES_BEFORE_CREATE: bool = True  # Re-read snapshot right before allocating
MAX_SUB_FAMILY_IMAGES: int = 10
MAX_SUB_FAMILY_VIDEOS: int = 2
```

## Usage

```python
from sku_catalog.config import settings

page_size = settings.CHILD_PAGE_SIZE
token = settings.API_TOKEN.get_secret_value() if settings.API_TOKEN else None
```
"""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
CATALOG_FILENAME: str = ".skucatalog"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "SKU_CATALOG_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path based on a predefined precedence order.

    1.  **Environment Variable**: `SKU_CATALOG_CONFIG_PATH` (if set and file exists).
    2.  **Catalog Config**: `.skucatalog` file in the project root directory.
    3.  **Dotenv Config**: `.env` file in the project root directory.
    4.  **Fallback**: `None`, which means environment-variable-only mode.

    Returns:
        Optional[str]: The path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    catalog_path: Path = PROJECT_ROOT / CATALOG_FILENAME
    if catalog_path.exists():
        return str(catalog_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Admin API**: Base URL, admin route segment, token, timeout.
    *   **Paging & Search**: Page sizes and debounce intervals for the family table
        and the per-row sub-family views.
    *   **Master Data**: Snapshot size for reference matching, media limits.
    *   **Logging**: Level and format for `logging_manager`.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Admin API
    API_BASE_URL: str = "http://localhost:8000"
    ADMIN_ROUTE: str = "admin"
    API_TOKEN: Optional[SecretStr] = None
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    HTTP_POOL_SIZE: int = 10

    # Paging & search
    FAMILY_PAGE_SIZE: int = 10
    CHILD_PAGE_SIZE: int = 5
    FAMILY_SEARCH_DEBOUNCE_MS: int = 1000
    CHILD_SEARCH_DEBOUNCE_MS: int = 500

    # Master data
    REFERENCE_SNAPSHOT_LIMIT: int = 1000
    REFRESH_CODES_BEFORE_CREATE: bool = True
    MAX_SUB_FAMILY_IMAGES: int = 10
    MAX_SUB_FAMILY_VIDEOS: int = 2

    # Logging
    DEFAULT_LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s %(levelname)s %(name)s %(message)s"

    @field_validator("API_BASE_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any) -> Any:
        """
        Validates that the admin API base URL is not empty.

        Trailing slashes are stripped so path joins stay predictable.
        """
        if not isinstance(v, str) or not v.strip():
            raise ValueError("API_BASE_URL must be set")
        return v.strip().rstrip("/")

    @field_validator("ADMIN_ROUTE", mode="before")
    @classmethod
    def strip_route_slashes(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().strip("/")
        return v

    @field_validator(
        "HTTP_POOL_SIZE",
        "FAMILY_PAGE_SIZE",
        "CHILD_PAGE_SIZE",
        "REFERENCE_SNAPSHOT_LIMIT",
        "MAX_SUB_FAMILY_IMAGES",
        "MAX_SUB_FAMILY_VIDEOS",
        mode="before",
    )
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        """
        Ensures sizes and limits are positive integers.

        Raises:
            ValueError: If the value is not a positive integer.
        """
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @field_validator("FAMILY_SEARCH_DEBOUNCE_MS", "CHILD_SEARCH_DEBOUNCE_MS", mode="before")
    @classmethod
    def validate_debounce(cls, v: Any, info: Any) -> int:
        value = int(v)
        if value < 0:
            raise ValueError(f"{info.field_name} must not be negative")
        return value

    @field_validator("REQUEST_TIMEOUT_SECONDS", mode="before")
    @classmethod
    def validate_timeout_values(cls, v: Any) -> float:
        """
        Enforces a request timeout between 1 and 300 seconds.
        """
        value = float(v)
        if not 1 <= value <= 300:
            raise ValueError("REQUEST_TIMEOUT_SECONDS must be between 1 and 300")
        return value

    @property
    def admin_api_root(self) -> str:
        """
        Root URL for admin endpoints, e.g. `http://localhost:8000/api/admin`.
        """
        return f"{self.API_BASE_URL}/api/{self.ADMIN_ROUTE}"

    @property
    def child_search_debounce_seconds(self) -> float:
        return self.CHILD_SEARCH_DEBOUNCE_MS / 1000.0

    @property
    def family_search_debounce_seconds(self) -> float:
        return self.FAMILY_SEARCH_DEBOUNCE_MS / 1000.0


# Global settings instance
settings: Settings = Settings()
