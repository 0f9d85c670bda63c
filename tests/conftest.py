"""Shared fixtures: an in-memory bucket standing in for GCS."""

from datetime import timedelta

import pytest

from config import Settings
from src.exceptions import ObjectNotFoundError, StoreError
from src.models import StoredObject


class InMemoryStore:
    """Dict-backed store with the same interface as GCSStore.

    ``fail`` maps an operation name to an exception raised on every call,
    or to a predicate on the first argument to fail selectively.
    """

    def __init__(self, objects: dict[str, bytes] | None = None):
        self.objects: dict[str, bytes] = dict(objects or {})
        self.content_types: dict[str, str] = {}
        self.calls: list[tuple] = []
        self.fail: dict[str, object] = {}

    def _check(self, op: str, key: str = "") -> None:
        self.calls.append((op, key))
        rule = self.fail.get(op)
        if rule is None:
            return
        if callable(rule) and not isinstance(rule, Exception):
            if rule(key):
                raise StoreError(f"{op} {key} failed")
            return
        raise rule

    def count(self, op: str) -> int:
        return sum(1 for call in self.calls if call[0] == op)

    def list(self, prefix: str = "", delimiter: str | None = None):
        self._check("list", prefix)
        for name in sorted(self.objects):
            if not name.startswith(prefix):
                continue
            if delimiter and delimiter in name[len(prefix):]:
                continue
            yield StoredObject(name=name, size=len(self.objects[name]))

    def read(self, key: str) -> bytes:
        self._check("read", key)
        if key not in self.objects:
            raise ObjectNotFoundError(f"{key} not found")
        return self.objects[key]

    def write(self, key: str, data: bytes, content_type: str) -> None:
        self._check("write", key)
        self.objects[key] = data
        self.content_types[key] = content_type

    def copy(self, src_key: str, dest_key: str) -> None:
        self._check("copy", src_key)
        if src_key not in self.objects:
            raise ObjectNotFoundError(f"{src_key} not found")
        self.objects[dest_key] = self.objects[src_key]

    def delete(self, key: str) -> None:
        self._check("delete", key)
        if key not in self.objects:
            raise ObjectNotFoundError(f"{key} not found")
        del self.objects[key]

    def signed_url(self, key: str, ttl: timedelta) -> str:
        self._check("signed_url", key)
        return f"https://storage.example.com/{key}?expires={int(ttl.total_seconds())}"

    def open(self, key: str):
        self._check("open", key)
        if key not in self.objects:
            raise ObjectNotFoundError(f"{key} not found")
        data = self.objects[key]
        return len(data), iter([data[i:i + 4] for i in range(0, len(data), 4)])


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        gcs_bucket="test-bucket",
        base_url="https://podcasts.example.com",
        podcast_title="",
    )
