"""Path conventions and endpoint derivation for the PowerSchool API."""

from __future__ import annotations

import re
from dataclasses import dataclass

TOKEN_PATH = "/oauth/access_token"
TABLE_PREFIX = "/ws/schema/table"
QUERY_PREFIX = "/ws/schema/query"
DATA_VERSION_PREFIX = "/ws/dataversion"
RECORD_PAGE_KEY = "record"

_REPEATED_SLASHES = re.compile(r"/{2,}")


@dataclass(frozen=True, slots=True)
class EndpointTraits:
    """Fields derived from an endpoint path, always computed together."""

    endpoint: str
    table_name: str | None = None
    record_id: int | None = None
    projection_default: bool = False
    page_key: str | None = None


def normalize_endpoint(path: str) -> str:
    """Collapse repeated slashes and strip one trailing slash."""

    collapsed = _REPEATED_SLASHES.sub("/", path)
    if len(collapsed) > 1 and collapsed.endswith("/"):
        return collapsed[:-1]
    return collapsed


def is_table_path(path: str) -> bool:
    return f"{TABLE_PREFIX}/" in f"{path}/"


def is_named_query_path(path: str) -> bool:
    return f"{QUERY_PREFIX}/" in f"{path}/"


def derive_from_endpoint(path: str) -> EndpointTraits:
    """Inspect a path for a table name, a trailing record id and paging metadata.

    A trailing all-digit segment is taken as the record id. Table paths
    (``/ws/schema/table/{name}[/{id}]``) turn the projection default on and
    report the table segment as the table name. Table and named-query paths
    keep their records under ``record``; any other path uses its last segment
    as the page key.
    """

    endpoint = normalize_endpoint(path)
    segments = [segment for segment in endpoint.split("/") if segment]
    trailing = segments[-1] if segments else None

    record_id: int | None = None
    if trailing is not None and trailing.isdigit():
        record_id = int(trailing)

    if is_table_path(endpoint):
        name_segments = _after_table_marker(segments)
        if record_id is not None:
            name_segments = name_segments[:-1]
        table_name = name_segments[-1] if name_segments else None
        return EndpointTraits(
            endpoint=endpoint,
            table_name=table_name,
            record_id=record_id,
            projection_default=True,
            page_key=RECORD_PAGE_KEY,
        )

    page_key = RECORD_PAGE_KEY if is_named_query_path(endpoint) else trailing
    return EndpointTraits(endpoint=endpoint, record_id=record_id, page_key=page_key)


def _after_table_marker(segments: list[str]) -> list[str]:
    marker = [segment for segment in TABLE_PREFIX.split("/") if segment]
    for index in range(len(segments) - len(marker) + 1):
        if segments[index : index + len(marker)] == marker:
            return segments[index + len(marker) :]
    return []


def table_path(name: str) -> str:
    if name.startswith(TABLE_PREFIX):
        return name
    return f"{TABLE_PREFIX}/{name}"


def named_query_path(name: str) -> str:
    if name.startswith(QUERY_PREFIX):
        return name
    return f"{QUERY_PREFIX}/{name}"


def data_version_path(application_name: str, version: int | str) -> str:
    return f"{DATA_VERSION_PREFIX}/{application_name}/{version}"
