"""Value coercion and query-string helpers for PowerSchool requests."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import parse_qsl

ParamValue = str | int | float | bool | None | Sequence[Any] | Mapping[str, Any]

_BRACKET_KEY = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_BRACKET_PART = re.compile(r"\[([^\[\]]*)\]")


def cast_value_to_string(value: ParamValue) -> str:
    """Render a single value the way PowerSchool accepts it in a query string."""

    if isinstance(value, bool):
        return "1" if value else "0"
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ",".join(cast_value_to_string(item) for item in value)
    return str(value)


def cast_values_to_string(data: Mapping[str, Any]) -> dict[str, Any]:
    """Cast every entry of ``data``, recursing into nested mappings only."""

    output: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, Mapping):
            output[key] = cast_values_to_string(value)
            continue
        output[key] = cast_value_to_string(value)
    return output


def join_values(value: str | Sequence[str]) -> str:
    if isinstance(value, str):
        return value
    return ",".join(str(item) for item in value)


class QueryList(list):
    """Values collected from a query string for one key.

    ``brackets`` records whether the key was written ``key[]``; encoding
    writes the values back the same way.
    """

    def __init__(self, values: Sequence[Any] = (), *, brackets: bool = False) -> None:
        super().__init__(values)
        self.brackets = brackets


def parse_query_string(query: str) -> dict[str, Any]:
    """Decode ``key=value&...`` into a mapping.

    Repeated plain keys collect into a list. Bracket keys nest:
    ``a[b]=1`` becomes ``{"a": {"b": "1"}}`` and ``a[]=1&a[]=2`` becomes
    ``{"a": ["1", "2"]}``. A scalar later reused as a bracket key is kept
    under index ``"0"``.
    """

    result: dict[str, Any] = {}
    for raw_key, value in parse_qsl(query.lstrip("?"), keep_blank_values=True):
        match = _BRACKET_KEY.match(raw_key)
        if not match or not match.group(2):
            _assign(result, raw_key, value)
            continue
        parts = [match.group(1), *_BRACKET_PART.findall(match.group(2))]
        target: Any = result
        for index, part in enumerate(parts[:-1]):
            following = parts[index + 1]
            if following == "":
                existing = target.get(part)
                if not isinstance(existing, list):
                    existing = QueryList(() if existing is None else [existing], brackets=True)
                    target[part] = existing
                target = existing
                break
            nested = target.get(part)
            if not isinstance(nested, dict):
                nested = _as_indexed(nested)
                target[part] = nested
            target = nested
        if isinstance(target, list):
            target.append(value)
        else:
            _assign(target, parts[-1], value)
    return result


def _as_indexed(existing: Any) -> dict[str, Any]:
    if existing is None:
        return {}
    if isinstance(existing, list):
        return {str(index): item for index, item in enumerate(existing)}
    return {"0": existing}


def _assign(target: dict[str, Any], key: str, value: str) -> None:
    if key not in target:
        target[key] = value
        return
    existing = target[key]
    if isinstance(existing, list):
        existing.append(value)
    elif isinstance(existing, dict):
        existing[str(len(existing))] = value
    else:
        target[key] = QueryList([existing, value])


def encode_query_params(params: Mapping[str, Any], prefix: str | None = None) -> list[tuple[str, str]]:
    """Flatten params into ``(key, value)`` pairs, nesting with brackets.

    Lists parsed from a query string go out one pair per value, as ``key[]``
    or as a repeated key depending on how they were written. Other values,
    lists included, are rendered with `cast_value_to_string`.
    """

    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if isinstance(value, Mapping):
            pairs.extend(encode_query_params(value, name))
            continue
        if isinstance(value, QueryList):
            item_name = f"{name}[]" if value.brackets else name
            pairs.extend((item_name, cast_value_to_string(item)) for item in value)
            continue
        pairs.append((name, cast_value_to_string(value)))
    return pairs
