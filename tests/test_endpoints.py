import pytest

from powerschool_client.endpoints import (
    data_version_path,
    derive_from_endpoint,
    named_query_path,
    normalize_endpoint,
    table_path,
)


@pytest.mark.parametrize(
    "path",
    [
        "",
        "/",
        "//",
        "/ws/schema/table/u_custom_table/",
        "/ws//schema///table/u_custom_table//",
        "ws/v1/district/school",
        "/ws/schema/table//u_custom_table/1/",
    ],
)
def test_normalize_endpoint_is_idempotent(path):
    once = normalize_endpoint(path)

    assert normalize_endpoint(once) == once
    assert "//" not in once


def test_normalize_endpoint_collapses_and_strips():
    assert normalize_endpoint("/ws//schema/table/u_custom_table/") == "/ws/schema/table/u_custom_table"


def test_derive_table_path_without_id():
    traits = derive_from_endpoint("/ws/schema/table/u_custom_table")

    assert traits.table_name == "u_custom_table"
    assert traits.record_id is None
    assert traits.projection_default is True
    assert traits.page_key == "record"


def test_derive_table_path_with_trailing_id():
    traits = derive_from_endpoint("/ws/schema/table/u_custom_table/42/")

    assert traits.endpoint == "/ws/schema/table/u_custom_table/42"
    assert traits.table_name == "u_custom_table"
    assert traits.record_id == 42


def test_derive_named_query_path():
    traits = derive_from_endpoint("/ws/schema/query/com.archboard.test")

    assert traits.table_name is None
    assert traits.projection_default is False
    assert traits.page_key == "record"


def test_derive_arbitrary_endpoint_uses_last_segment_as_page_key():
    traits = derive_from_endpoint("/ws/v1/district/student")

    assert traits.table_name is None
    assert traits.record_id is None
    assert traits.projection_default is False
    assert traits.page_key == "student"


def test_derive_arbitrary_endpoint_with_numeric_tail():
    traits = derive_from_endpoint("/ws/v1/student/123")

    assert traits.record_id == 123
    assert traits.table_name is None


def test_path_helpers_keep_absolute_paths():
    assert table_path("u_custom_table") == "/ws/schema/table/u_custom_table"
    assert table_path("/ws/schema/table/u_custom_table") == "/ws/schema/table/u_custom_table"
    assert named_query_path("com.archboard.test") == "/ws/schema/query/com.archboard.test"
    assert named_query_path("/ws/schema/query/x.y") == "/ws/schema/query/x.y"
    assert data_version_path("myapp", 7) == "/ws/dataversion/myapp/7"


@pytest.mark.parametrize("path", ["/ws/schema/table", "/ws/schema/table/5"])
def test_derive_table_marker_without_table_segment(path):
    traits = derive_from_endpoint(path)

    assert traits.table_name is None
    assert traits.projection_default is True
