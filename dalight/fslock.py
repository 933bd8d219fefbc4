"""Lock files that keep several processes from sharing a working directory."""

from __future__ import annotations

import fcntl
import os


class FSLockError(OSError):
    """Raised when a lock file cannot be created, locked or released."""


class LockedError(FSLockError):
    """Raised when the lock file is already locked."""

    def __init__(self) -> None:
        super().__init__("fslock: directory is locked")


class Locker:
    """An exclusive, non-blocking lock on a file at ``path``."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = os.fspath(path)
        self._fd: int | None = None

    def lock(self) -> None:
        """Take the lock, raising LockedError if another holder has it."""
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_RDWR, 0o666)
        except OSError as exc:
            raise FSLockError(f"fslock: error opening file: {exc}") from exc
        try:
            os.write(fd, str(os.getpid()).encode())
        except OSError as exc:
            os.close(fd)
            raise FSLockError(f"fslock: error writing process id: {exc}") from exc
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            raise LockedError() from None
        except OSError as exc:
            os.close(fd)
            raise FSLockError(f"fslock: flocking error: {exc}") from exc
        self._fd = fd

    def unlock(self) -> None:
        """Release the lock and remove the lock file; a no-op if not locked."""
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        try:
            fcntl.flock(fd, fcntl.LOCK_UN | fcntl.LOCK_NB)
        except OSError as exc:
            os.close(fd)
            raise FSLockError(f"fslock: unflocking error: {exc}") from exc
        try:
            os.close(fd)
        except OSError as exc:
            raise FSLockError(f"fslock: while closing file: {exc}") from exc
        os.remove(self.path)

    @property
    def locked(self) -> bool:
        return self._fd is not None

    def __enter__(self) -> Locker:
        self.lock()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unlock()


def lock(path: str | os.PathLike[str]) -> Locker:
    """Create a Locker for ``path`` and lock it immediately."""
    locker = Locker(path)
    locker.lock()
    return locker