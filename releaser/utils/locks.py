import fcntl
import logging
import os
import re
import threading
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)

_registry_guard = threading.Lock()
_thread_locks: dict[tuple[str, str], threading.Lock] = {}


def _lock_file_name(key: tuple[str, str]) -> str:
    safe = [re.sub(r"[^A-Za-z0-9_.-]", "_", part) for part in key]
    return f"{safe[0]}--{safe[1]}.lock"


def _thread_lock(key: tuple[str, str]) -> threading.Lock:
    with _registry_guard:
        return _thread_locks.setdefault(key, threading.Lock())


class DeploymentLock:
    """Mutual exclusion keyed by (application, environment).

    Runs in one process share a ``threading.Lock`` per key; runs in
    separate processes on the same host additionally contend for an
    exclusive ``fcntl`` lock on a sidecar file under ``lock_dir``.
    """

    def __init__(self, lock_dir: str | None = None):
        self.lock_dir: str | None = lock_dir

    @contextmanager
    def hold(self, application_name: str, environment_name: str) -> Iterator[None]:
        key = (application_name, environment_name)
        with _thread_lock(key):
            if not self.lock_dir:
                yield
                return
            os.makedirs(self.lock_dir, exist_ok=True)
            path = os.path.join(self.lock_dir, _lock_file_name(key))
            with open(path, "a+") as handle:
                logger.debug(f"Waiting for deployment lock {path}")
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
