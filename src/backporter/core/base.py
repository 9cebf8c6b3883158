"""Closeable base model shared by configuration and logging.

Separate from config.py so log.py can use it without importing the
configuration tree.
"""

from __future__ import annotations

import sys

from pydantic import BaseModel


class BaseConfig(BaseModel):
    """A configuration section that owns resources.

    close() is forwarded to every field that has a close() method,
    giving the shutdown chain State → Config → Logger → sinks. Usable
    as a context manager.
    """

    def close(self):
        """Close child fields. A failing child is reported on stderr
        and the remaining children are still closed."""
        for name in type(self).model_fields:
            closer = getattr(getattr(self, name, None), "close", None)
            if not callable(closer):
                continue
            try:
                closer()
            except Exception as e:
                print(f"Warning: Error closing {name}: {e}", file=sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


__all__ = ["BaseConfig"]
