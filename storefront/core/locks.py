from __future__ import annotations
import hashlib
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Iterator, Optional

from filelock import FileLock, Timeout

from storefront.config import settings
from storefront.core.errors import StoreUnavailable


class KeyedLocks:
    """
    Inter-process mutual exclusion per string key (one lock file per key).

    Usage:
      locks = KeyedLocks()
      with locks.hold("user:42", "guest:guest_1700000000000_ab12"):
          ...  # both keys held; acquired in sorted order
    """

    def __init__(self, lock_dir: Optional[Path] = None, timeout: Optional[float] = None):
        self._lock_dir = Path(lock_dir) if lock_dir else None
        self._timeout = timeout

    @property
    def lock_dir(self) -> Path:
        return self._lock_dir or Path(settings.DATA_DIR) / "locks"

    @property
    def timeout(self) -> float:
        return float(self._timeout if self._timeout is not None else settings.LOCK_TIMEOUT)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self.lock_dir / f"{digest}.lock"

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        ordered = sorted(set(keys))
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        with ExitStack() as stack:
            for key in ordered:
                lock = FileLock(str(self._path(key)), timeout=self.timeout)
                try:
                    stack.enter_context(lock)
                except Timeout as exc:
                    raise StoreUnavailable(f"Timed out waiting for lock on {key}") from exc
            yield


cart_locks = KeyedLocks()
