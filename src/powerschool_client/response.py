"""Wrapper around a parsed PowerSchool response body."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any


class PowerSchoolResponse:
    """Expose the top-level values of a response body.

    Each iteration starts a fresh pass over the values in insertion order.
    """

    __slots__ = ("_raw_data",)

    def __init__(self, data: Mapping[str, Any] | None) -> None:
        self._raw_data: Mapping[str, Any] = MappingProxyType(dict(data or {}))

    @property
    def raw_data(self) -> Mapping[str, Any]:
        return self._raw_data

    def __iter__(self) -> Iterator[Any]:
        for key in self._raw_data:
            yield self._raw_data[key]

    def __repr__(self) -> str:
        return f"PowerSchoolResponse({dict(self._raw_data)!r})"
