"""
Key-value storage backends (persistence).

The store keeps its entire state as one string value under one key. Any
object with `get(key)` / `set(key, value)` can back it; this module ships
three:

- InMemoryStorage: a plain dict, used by tests and throwaway sessions.
- JsonFileStorage: a local JSON file of key -> string, the on-disk
  equivalent of browser localStorage.
- SupabaseStorage: one row per key in a Supabase table.

Each `set` replaces the whole value for the key in a single write.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Supabase table holding key/value rows.
# Expected schema: key text primary key, value text not null.
_KV_TABLE: str = "kv_store"

_DEFAULT_BACKEND: str = "file"
_DEFAULT_FILE: str = ".shop_store.json"


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryStorage:
    """Dict-backed storage. Values live only as long as the instance."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._values


class JsonFileStorage:
    """
    Storage backed by a single JSON object on disk.

    A missing file reads as empty. Writes go to a temporary file in the same
    directory which then replaces the target, so readers see either the old
    or the new content.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise RuntimeError(f"Storage file {self.path} does not contain a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._read_all()
        values[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(values, fh)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


class SupabaseStorage:
    """
    Storage backed by a Supabase key/value table.

    The client defaults to the shared one from `repositories.client`, which is
    only created when this backend is first used.
    """

    def __init__(self, client: Any = None, table: str = _KV_TABLE) -> None:
        self._client = client
        self.table = table

    @property
    def client(self) -> Any:
        if self._client is None:
            from repositories.client import get_supabase_client

            self._client = get_supabase_client()
        return self._client

    def get(self, key: str) -> Optional[str]:
        response = (
            self.client.table(self.table)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )

        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to read key {key!r}: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return rows[0]["value"]

    def set(self, key: str, value: str) -> None:
        response = self.client.table(self.table).upsert({"key": key, "value": value}).execute()

        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to write key {key!r}: {error}")


def storage_from_env() -> KeyValueStorage:
    """
    Build the storage backend selected by the environment.

    Environment variables:
    - SHOP_STORE_BACKEND: memory, file (default) or supabase
    - SHOP_STORE_FILE: path used by the file backend (default .shop_store.json)
    - SHOP_STORE_TABLE: table used by the supabase backend (default kv_store)
    """

    load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env")

    backend = os.getenv("SHOP_STORE_BACKEND", _DEFAULT_BACKEND).strip().lower()

    if backend == "memory":
        logger.warning("Using in-memory storage; state will not survive this process")
        return InMemoryStorage()
    if backend == "file":
        path = os.getenv("SHOP_STORE_FILE", _DEFAULT_FILE)
        logger.debug("Using file storage at %s", path)
        return JsonFileStorage(path)
    if backend == "supabase":
        table = os.getenv("SHOP_STORE_TABLE", _KV_TABLE)
        logger.debug("Using Supabase storage table %s", table)
        return SupabaseStorage(table=table)

    raise RuntimeError(
        f"Unknown SHOP_STORE_BACKEND {backend!r}. "
        "Expected one of: memory, file, supabase."
    )


__all__ = [
    "KeyValueStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "SupabaseStorage",
    "storage_from_env",
]
