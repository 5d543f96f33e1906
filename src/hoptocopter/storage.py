"""Per-repository profile storage.

Each repository name maps to one directory holding the latest uploaded
profile as `coverage.out`. Uploads overwrite (last writer wins); a
per-name lock serialises an upload against a display of the same name.
"""
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

PROFILE_FILE = "coverage.out"


class StorageError(Exception):
    pass


class InvalidRepoName(StorageError):
    pass


class ProfileNotFound(StorageError):
    pass


def validate_repo(name: str) -> str:
    if not name:
        raise InvalidRepoName("repository name is empty")
    if name in (".", "..") or "/" in name or "\\" in name or "\0" in name:
        raise InvalidRepoName(f"invalid repository name: {name!r}")
    return name


class ProfileStore:
    def __init__(self, root: str | Path = "."):
        self.root = Path(root)
        # repo -> [lock, holders and waiters]; dropped when nobody needs it
        self._locks: dict[str, list] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, repo: str) -> Path:
        return self.root / validate_repo(repo) / PROFILE_FILE

    @contextmanager
    def lock(self, repo: str):
        """Hold the lock for one repository; other names are unaffected."""
        with self._locks_guard:
            entry = self._locks.get(repo)
            if entry is None:
                entry = self._locks[repo] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[repo]

    def save(self, repo: str, data: bytes) -> Path:
        path = self.path_for(repo)
        if not path.parent.exists():
            logger.info("Directory for %s does not exist, creating", repo)
        path.parent.mkdir(parents=True, exist_ok=True)
        # readers only ever see a complete file
        tmp = path.with_suffix(".tmp")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        return path

    def load(self, repo: str) -> bytes:
        path = self.path_for(repo)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise ProfileNotFound(f"no coverage profile uploaded for {repo!r}") from e
