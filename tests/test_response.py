import pytest

from powerschool_client import PowerSchoolResponse


def test_iterates_top_level_values_in_insertion_order():
    response = PowerSchoolResponse({"record": [{"id": 1}], "@extensions": "x", "count": 3})

    assert list(response) == [[{"id": 1}], "x", 3]


def test_iteration_restarts_on_each_pass():
    response = PowerSchoolResponse({"a": 1, "b": 2})

    assert list(response) == [1, 2]
    assert list(response) == [1, 2]


def test_raw_data_is_verbatim_and_read_only():
    body = {"record": []}
    response = PowerSchoolResponse(body)

    assert response.raw_data == body
    with pytest.raises(TypeError):
        response.raw_data["record"] = None  # type: ignore[index]


def test_empty_body_wraps_empty_mapping():
    response = PowerSchoolResponse(None)

    assert list(response) == []
    assert dict(response.raw_data) == {}
