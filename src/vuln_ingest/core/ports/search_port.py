from __future__ import annotations

from typing import Protocol, Sequence

from ..domain.models import FileLocator


class CodeSearchPort(Protocol):
    def search(self, repo: str, filenames: Sequence[str] | None = None) -> Sequence[FileLocator]:
        """Return locators of candidate scan files in repo.

        An empty sequence means nothing matched; it is not an error.
        Raises RetryExhaustedError when every attempt failed.
        """
        ...
