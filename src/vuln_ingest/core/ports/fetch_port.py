from __future__ import annotations

from typing import Protocol

from ..domain.models import FileLocator


class FileFetchPort(Protocol):
    def fetch(self, locator: FileLocator) -> bytes:
        """Return the raw content of the file behind locator.

        Raises RetryExhaustedError (with the final cause attached) when every attempt failed.
        """
        ...
