"""Refresh and blocked token storage backed by Redis."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Union

import redis

from wotop.errors import AppError, ErrorType

REFRESH_TOKEN_TABLE_NAME = "refresh_tokens"
BLOCKED_TOKEN_TABLE_NAME = "blocked_tokens"


@dataclass(frozen=True)
class RefreshToken:
    """A stored refresh token: its id and the subject it was issued to."""

    subject: str
    jti: str


def _text(value: Union[bytes, str]) -> str:
    return value.decode("utf-8") if isinstance(value, (bytes, bytearray)) else value


class RedisTokenRepository:
    """Keeps refresh tokens and blocked access tokens in Redis."""

    def __init__(
        self,
        client: Any,
        *,
        refresh_prefix: str = REFRESH_TOKEN_TABLE_NAME,
        blocked_prefix: str = BLOCKED_TOKEN_TABLE_NAME,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.refresh_prefix = refresh_prefix
        self.blocked_prefix = blocked_prefix
        self._clock = clock

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisTokenRepository":
        """Create a repository connected to the Redis server at url."""
        return cls(redis.Redis.from_url(url), **kwargs)

    def _refresh_key(self, jti: str) -> str:
        return f"{self.refresh_prefix}:{jti}"

    def _get(self, key: str) -> str:
        value = self.client.get(key)
        if value is None:
            raise KeyError(key)
        return _text(value)

    def store_refresh_token(self, sub: str, jti: str) -> None:
        """Store the refresh token jti as issued to sub, without expiry."""
        self.client.set(self._refresh_key(jti), sub)

    def delete_refresh_token(self, jti: str) -> None:
        """Remove the refresh token jti."""
        self.client.delete(self._refresh_key(jti))

    def find_refresh_token(self, jti: str) -> str:
        """Return the subject of refresh token jti; raise if it is gone."""
        value = self.client.get(self._refresh_key(jti))
        if value is None:
            raise AppError(ErrorType.TOKEN_ALREADY_REFRESHED)
        return _text(value)

    def find_all_refresh_tokens(self) -> list[RefreshToken]:
        """Return every stored refresh token."""
        tokens = []
        for raw_key in self.client.keys(f"{self.refresh_prefix}:*"):
            key = _text(raw_key)
            subject = self._get(key)
            tokens.append(RefreshToken(subject=subject, jti=key.split(":")[1]))
        return tokens

    def store_blocked_token(self, sub: str, token: str, expires_at: int) -> None:
        """Block token for sub until the Unix time expires_at."""
        self.client.set(f"{self.blocked_prefix}:{sub}:{expires_at}", token)

    def find_all_blocked_tokens(self) -> list[str]:
        """Return blocked tokens still in force, deleting those that expired."""
        tokens = []
        now = int(self._clock())
        for raw_key in self.client.keys(f"{self.blocked_prefix}:*:*"):
            key = _text(raw_key)
            expires_text = key.split(":")[-1]
            if expires_text:
                try:
                    expires_at = int(expires_text, 10)
                except ValueError:
                    continue
                if expires_at <= now:
                    self.client.delete(key)
                    continue
            tokens.append(self._get(key))
        return tokens