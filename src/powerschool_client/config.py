"""Configuration and request-state containers for the PowerSchool client."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


@dataclass(slots=True)
class ClientConfig:
    """Typed configuration for `PowerSchoolClient`."""

    base_url: str
    client_id: str
    client_secret: str
    verify_ssl: bool | str = True
    timeout: float = 30.0
    default_headers: Mapping[str, str] | None = None

    def resolved_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.default_headers:
            headers.update(self.default_headers)
        return headers


@dataclass(slots=True)
class RequestConfig:
    """Pending state of the request being built.

    ``table_name``, ``record_id``, ``include_projection`` and ``page_key`` are
    derived from ``endpoint`` whenever it is set.
    """

    endpoint: str | None = None
    method: str = "GET"
    table_name: str | None = None
    record_id: int | None = None
    include_projection: bool = False
    data: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    page_key: str | None = None


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    """Transport-ready request assembled from a `RequestConfig`."""

    url: str
    method: str
    headers: Mapping[str, str]
    params: Mapping[str, Any]
    data: Mapping[str, Any]

    def as_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "method": self.method,
            "headers": dict(self.headers),
            "params": dict(self.params),
            "data": dict(self.data),
        }
