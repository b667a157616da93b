# Overview: Flask extension instances for database, migrations and the product cache.

from __future__ import annotations

import json
from typing import Any, TYPE_CHECKING

import redis
from flask import Flask, current_app
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

if TYPE_CHECKING:
    from redis import Redis

db = SQLAlchemy()
migrate = Migrate()


class RedisCache:
    """
    Thin JSON cache over redis-py.

    Disabled when REDIS_URL is not configured. Every Redis failure is logged
    and reported as a cache miss so that requests never depend on the cache.
    """

    def __init__(self) -> None:
        self._client: "Redis | None" = None

    def init_app(self, app: Flask) -> None:
        url = app.config.get("REDIS_URL")
        if url:
            self._client = redis.from_url(
                url,
                password=app.config.get("REDIS_PASSWORD") or None,
                decode_responses=True,
            )
        else:
            app.logger.info("REDIS_URL not set, product cache disabled")
            self._client = None
        app.extensions["redis_cache"] = self

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def get_json(self, key: str) -> Any | None:
        if self._client is None:
            return None
        try:
            raw = self._client.get(key)
        except redis.RedisError:
            current_app.logger.warning("Cache read failed for %s", key, exc_info=True)
            return None
        if raw is None:
            return None
        return json.loads(raw)

    def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        if self._client is None:
            return
        try:
            self._client.set(key, json.dumps(value), ex=ttl_seconds)
        except redis.RedisError:
            current_app.logger.warning("Cache write failed for %s", key, exc_info=True)

    def delete_pattern(self, pattern: str) -> int:
        if self._client is None:
            return 0
        deleted = 0
        try:
            for key in self._client.scan_iter(match=pattern):
                deleted += self._client.delete(key)
        except redis.RedisError:
            current_app.logger.warning("Cache invalidation failed for %s", pattern, exc_info=True)
        return deleted


cache = RedisCache()
