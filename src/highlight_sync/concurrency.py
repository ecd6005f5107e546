"""Per-library import lock -- at most one import runs against a library.

Each library directory gets its own lock file, named from a hash of its
resolved path, so imports into different libraries never wait on each other.
"""

import hashlib
import os
import sys
from pathlib import Path

from loguru import logger

from .errors import LockError

log = logger.bind(stage="concurrency")


def library_lock_path(lock_dir: Path, library_dir: Path) -> Path:
    """Lock file for library_dir: import-<first 16 hex of sha256(path)>.lock."""
    digest = hashlib.sha256(str(library_dir.resolve()).encode("utf-8")).hexdigest()
    return lock_dir / f"import-{digest[:16]}.lock"


def _try_lock(fh) -> bool:
    if sys.platform == "win32":
        import msvcrt
        try:
            msvcrt.locking(fh.fileno(), msvcrt.LK_NBLCK, 1)
        except OSError:
            return False
    else:
        import fcntl
        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            return False
    return True


class ImportLock:
    """Exclusive, non-blocking lock on one library.

    Usable as a context manager; the lock is held until release() or exit.
    The lock file records the holder's pid and library path.
    """

    def __init__(self, lock_dir: Path, library_dir: Path) -> None:
        self.library_dir = library_dir
        self.path = library_lock_path(lock_dir, library_dir)
        self._fh = None

    @property
    def held(self) -> bool:
        return self._fh is not None

    def acquire(self) -> "ImportLock":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # "a" keeps a running holder's details intact if we lose the race
        fh = open(self.path, "a+", encoding="utf-8")
        fh.seek(0)
        if not _try_lock(fh):
            fh.seek(0)
            holder = fh.read().strip() or "unknown holder"
            fh.close()
            log.warning(f"Library {self.library_dir} is locked ({holder})")
            raise LockError(
                f"Another import is already running for library {self.library_dir}"
            )
        fh.seek(0)
        fh.truncate()
        fh.write(f"pid={os.getpid()} library={self.library_dir.resolve()}\n")
        fh.flush()
        self._fh = fh
        log.debug(f"Lock acquired at {self.path}")
        return self

    def release(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            log.debug(f"Lock released at {self.path}")

    def __enter__(self) -> "ImportLock":
        return self.acquire()

    def __exit__(self, *exc_info) -> None:
        self.release()
