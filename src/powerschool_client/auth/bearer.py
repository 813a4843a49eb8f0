"""Bearer token authentication."""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import dataclass

from .base import AuthStrategy


@dataclass(slots=True)
class BearerAuth(AuthStrategy):
    """Apply an access token issued by the OAuth endpoint."""

    token: str | None = None

    def apply(self, headers: MutableMapping[str, str]) -> None:
        headers["Authorization"] = f"Bearer {self.token or ''}"

    def update_token(self, token: str | None) -> None:
        self.token = token

    @property
    def is_set(self) -> bool:
        return bool(self.token)
