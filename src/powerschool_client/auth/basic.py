"""HTTP Basic credentials for the client-credentials exchange."""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import dataclass

from .base import AuthStrategy


@dataclass(slots=True)
class BasicAuth(AuthStrategy):
    """Apply ``Basic base64(client_id:client_secret)``."""

    client_id: str
    client_secret: str

    def apply(self, headers: MutableMapping[str, str]) -> None:
        from requests.auth import _basic_auth_str

        headers["Authorization"] = _basic_auth_str(self.client_id, self.client_secret)
