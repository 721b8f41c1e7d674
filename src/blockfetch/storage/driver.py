"""
Backend driver surface.

A driver exposes a single capability, ``read(path)``, returning a stream the
caller owns and must close. Drivers may also expose ``is_retryable(exc)`` to
tell the retrying reader which of their errors are worth retrying.
"""

from pathlib import Path
from typing import BinaryIO, Protocol, Union, runtime_checkable

# Local filesystem errors that waiting will not fix
_TERMINAL_ERRORS = (PermissionError, IsADirectoryError, NotADirectoryError)


@runtime_checkable
class BackupStoreDriver(Protocol):
    """Read capability of a backup store backend."""

    def read(self, path: str) -> BinaryIO:
        ...


class LocalDirectoryDriver:
    """
    Read-only driver over a local directory.

    Backend paths are resolved relative to ``root`` and may not escape it.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.lstrip("/")).resolve()
        if target != self.root and self.root not in target.parents:
            raise PermissionError(f"path {path!r} escapes backup store root {self.root}")
        return target

    def is_retryable(self, exc: BaseException) -> bool:
        """
        Classify a read error.

        A missing file may still be in flight from a writer and is retried.
        Permission errors (escaping paths included) and directory mix-ups are
        terminal.
        """
        if getattr(exc, "retryable", True) is False:
            return False
        return not isinstance(exc, _TERMINAL_ERRORS)

    def read(self, path: str) -> BinaryIO:
        """Open the file at ``path`` for binary reading."""
        return open(self._resolve(path), "rb")
