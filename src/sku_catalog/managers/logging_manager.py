"""
# Logging Manager

Central logger factory for the SKU catalog core.

Every module obtains its logger the same way:

```python
from sku_catalog.managers.logging_manager import get_logger

logger = get_logger(prefix="[ReferenceResolver]")
logger.info(f"Created brand {entity.code}")
```

The root `sku_catalog` logger is configured once, on first use, with a single stream
handler. Level and format come from `settings.DEFAULT_LOG_LEVEL` and `settings.LOG_FORMAT`.
Applications that configure logging themselves can attach their own handlers to the
`sku_catalog` logger. This module does not add a handler when one is already present.
"""

import logging
from typing import Any, MutableMapping, Optional, Tuple

from sku_catalog.config import settings

ROOT_LOGGER_NAME = "sku_catalog"

_configured = False


class PrefixAdapter(logging.LoggerAdapter):
    """Prepends a fixed component prefix (e.g. `[ChildCache]`) to every message."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        prefix = self.extra.get("prefix") if self.extra else None
        if prefix:
            return f"{prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    root = logging.getLogger(ROOT_LOGGER_NAME)
    level = logging.getLevelName(settings.DEFAULT_LOG_LEVEL.upper())
    root.setLevel(level if isinstance(level, int) else logging.INFO)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        root.addHandler(handler)
    _configured = True


def get_logger(name: Optional[str] = None, prefix: str = "") -> PrefixAdapter:
    """
    Return a prefixed logger under the `sku_catalog` hierarchy.

    Args:
        name: Child logger name (`sku_catalog.<name>`). Defaults to the root logger.
        prefix: Text prepended to every message, e.g. `"[SequenceEditor]"`.

    Returns:
        A `logging.LoggerAdapter` that supports the usual `debug/info/warning/error` calls.
    """
    _configure_root()
    logger_name = f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME
    return PrefixAdapter(logging.getLogger(logger_name), {"prefix": prefix})
