"""
Flash persistence across a redirect.
The controller saves the messages set during a redirecting request under a random key,
puts the key in a cookie, and pops them on the next request.
"""
import json
import threading
import time
import uuid
from typing import Any, Dict, Optional, Tuple

import redis


class FlashStore:
    """save(messages) -> key; pop(key) -> messages (empty dict when unknown or expired)."""

    def save(self, messages: Dict[str, Any]) -> str:
        raise NotImplementedError

    def pop(self, key: str) -> Dict[str, Any]:
        raise NotImplementedError


def new_flash_key() -> str:
    return uuid.uuid4().hex


class MemoryFlashStore(FlashStore):
    """Process-local store. Expired entries are purged on save; at most max_items are kept, oldest dropped first."""

    def __init__(self, ttl_seconds: int = 300, max_items: int = 1000):
        self._ttl = ttl_seconds
        self._max_items = max_items
        self._items: Dict[str, Tuple[float, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def size(self) -> int:
        return len(self._items)

    def _purge(self, now: float) -> None:
        for key in [k for k, (expires_at, _) in self._items.items() if expires_at < now]:
            del self._items[key]
        while self._items and len(self._items) >= self._max_items:
            del self._items[next(iter(self._items))]

    def save(self, messages: Dict[str, Any]) -> str:
        key = new_flash_key()
        now = time.monotonic()
        with self._lock:
            self._purge(now)
            self._items[key] = (now + self._ttl, dict(messages))
        return key

    def pop(self, key: str) -> Dict[str, Any]:
        with self._lock:
            item = self._items.pop(key, None)
        if item is None:
            return {}
        expires_at, messages = item
        if expires_at < time.monotonic():
            return {}
        return messages


class RedisFlashStore(FlashStore):
    """Keys are prefixed and expire after ttl_seconds; values are JSON."""

    def __init__(
        self,
        url: Optional[str] = None,
        client: Optional[redis.Redis] = None,
        prefix: str = "actionflow:flash:",
        ttl_seconds: int = 300,
    ):
        self._url = url
        self._client = client
        self._prefix = prefix
        self._ttl = ttl_seconds

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            if not self._url:
                raise ValueError("RedisFlashStore needs a url or a client")
            self._client = redis.Redis.from_url(self._url, decode_responses=True)
        return self._client

    def save(self, messages: Dict[str, Any]) -> str:
        key = new_flash_key()
        self._get_client().set(self._prefix + key, json.dumps(messages), ex=self._ttl)
        return key

    def pop(self, key: str) -> Dict[str, Any]:
        client = self._get_client()
        pipe = client.pipeline()
        pipe.get(self._prefix + key)
        pipe.delete(self._prefix + key)
        raw, _ = pipe.execute()
        if not raw:
            return {}
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)


def flash_store_from_settings(settings: Any) -> FlashStore:
    if settings.redis_url:
        return RedisFlashStore(url=settings.redis_url, ttl_seconds=settings.flash_ttl_seconds)
    return MemoryFlashStore(ttl_seconds=settings.flash_ttl_seconds)
