"""
JSON File Storage Implementation

DESIGN DECISION: One JSON file per collection in a data directory.
This is the direct analogue of the dashboard's localStorage:
- `wallet_accounts.json`, `wallet_transactions.json`, ...
- Human-readable, trivially backed up or reset
- Whole-collection reads and writes, exactly like getItem/setItem

TRADEOFFS:
- Not suitable for large ledgers (we rewrite the whole file on every change)
- No cross-process locking (single user, single process)

Writes go to a temporary file first and are moved into place with
os.replace, so a crash mid-write never leaves a truncated collection.
Transient OS errors are retried with tenacity.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from wallet_ledger.config import get_settings
from wallet_ledger.services.storage.interface import (
    CollectionStorageInterface,
    StorageConnectionError,
    StorageError,
)


class JsonFileStorage(CollectionStorageInterface):
    """
    File-backed collection storage.

    Each collection lives in `<data_dir>/<key_prefix><collection>.json`.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        key_prefix: Optional[str] = None,
        retry_attempts: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._data_dir = Path(data_dir if data_dir is not None else settings.data_dir)
        self._key_prefix = key_prefix if key_prefix is not None else settings.key_prefix
        attempts = retry_attempts or settings.retry_attempts

        policy = retry(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        self._read_with_retry = policy(self._read_file)
        self._write_with_retry = policy(self._write_file)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, collection: str) -> Path:
        """File that holds a collection."""
        if not collection or "/" in collection or "\\" in collection:
            raise StorageError(f"Invalid collection name: {collection!r}")
        return self._data_dir / f"{self._key_prefix}{collection}.json"

    def _ensure_dir(self) -> None:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageConnectionError(
                f"Cannot create data directory {self._data_dir}: {e}"
            )

    def _read_file(self, path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    def _write_file(self, path: Path, value: Any) -> None:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.stem}-", suffix=".tmp", dir=path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(value, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def get(self, collection: str) -> Optional[Any]:
        """Read a collection file, or None if it has never been written."""
        path = self.path_for(collection)
        try:
            return self._read_with_retry(path)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt collection {collection!r} in {path}: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read {collection!r}: {e}")

    async def set(self, collection: str, value: Any) -> None:
        """Atomically replace a collection file."""
        path = self.path_for(collection)
        self._ensure_dir()
        try:
            self._write_with_retry(path, value)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {collection!r}: {e}")

    async def remove(self, collection: str) -> bool:
        path = self.path_for(collection)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to remove {collection!r}: {e}")
