import pytest

from powerschool_client import PowerSchoolClient

BASE_URL = "https://ps.example.com"


@pytest.fixture
def client():
    return PowerSchoolClient(BASE_URL, "client-id", "client-secret")


def test_absolute_table_path_is_used_verbatim(client):
    descriptor = client.table("/ws/schema/table/u_custom_table").get_request_descriptor()

    assert descriptor.method == "GET"
    assert descriptor.url == "/ws/schema/table/u_custom_table"
    assert "Authorization" in descriptor.headers
    assert descriptor.params["projection"] == "*"
    assert client.request_config.table_name == "u_custom_table"


def test_relative_table_name_matches_absolute(client):
    client.set_table("u_custom_table")

    config = client.request_config
    assert config.endpoint == "/ws/schema/table/u_custom_table"
    assert config.table_name == "u_custom_table"
    assert config.include_projection is True
    assert config.page_key == "record"


def test_id_helpers_append_and_derive_record_id(client):
    descriptor = client.to("/ws/schema/table/u_custom_table/").for_id(1).get_request_descriptor()

    assert descriptor.url == "/ws/schema/table/u_custom_table/1"
    assert client.request_config.record_id == 1
    assert client.request_config.table_name == "u_custom_table"

    descriptor = client.to("/ws/schema/table/u_custom_table").id(2).get_request_descriptor()

    assert descriptor.url == "/ws/schema/table/u_custom_table/2"
    assert client.request_config.record_id == 2


def test_query_string_is_parsed_and_extended(client):
    params = (
        client.to("/ws/schema/table/u_custom_table/")
        .query("param1=one&param2=two")
        .add_query_param("param3", "three")
        .build_params()
    )

    assert params == {
        "param1": "one",
        "param2": "two",
        "param3": "three",
        "projection": "*",
    }


def test_query_mapping_replaces_params(client):
    params = (
        client.to("/ws/schema/table/u_custom_table/")
        .add_query_param("stale", "x")
        .with_query_params({"param1": "one", "param2": "two"})
        .build_params()
    )

    assert params == {"param1": "one", "param2": "two", "projection": "*"}


def test_get_request_sends_data_as_params(client):
    params = (
        client.to("/ws/schema/table/u_custom_table/")
        .with_data({"param1": "one", "param2": "two"})
        .method("GET")
        .build_params()
    )

    assert params == {"param1": "one", "param2": "two", "projection": "*"}


def test_post_request_keeps_data_out_of_params(client):
    descriptor = (
        client.to("/ws/schema/table/u_custom_table")
        .with_data({"param1": "one"})
        .set_method("post")
        .get_request_descriptor()
    )

    assert descriptor.method == "POST"
    assert descriptor.params == {"projection": "*"}
    assert descriptor.data == {"param1": "one"}


def test_explicit_params_override_projection_and_body(client):
    params = (
        client.table("students")
        .set_data_item("page", 1)
        .add_query_param("page", 3)
        .add_query_param("projection", "id")
        .build_params()
    )

    assert params == {"projection": "id", "page": 3}


def test_absolute_named_query_without_data(client):
    descriptor = client.pq("/ws/schema/query/com.archboard.test").get_request_descriptor()

    assert descriptor.method == "POST"
    assert descriptor.url == "/ws/schema/query/com.archboard.test"
    assert descriptor.data == {}


def test_relative_named_query_with_data(client):
    descriptor = client.named_query(
        "com.archboard.test", {"param1": "one", "param2": "two"}
    ).get_request_descriptor()

    assert descriptor.method == "POST"
    assert descriptor.url == "/ws/schema/query/com.archboard.test"
    assert descriptor.data == {"param1": "one", "param2": "two"}
    assert client.request_config.page_key == "record"


def test_string_projection_on_slashed_table_name(client):
    descriptor = (
        client.against_table("/u_custom_table/")
        .with_data({"param1": "one", "param2": "two"})
        .with_projection("field1,field2")
        .get_request_descriptor()
    )

    assert descriptor.params == {
        "param1": "one",
        "param2": "two",
        "projection": "field1,field2",
    }
    assert descriptor.url == "/ws/schema/table/u_custom_table"


def test_list_projection_is_comma_joined(client):
    descriptor = (
        client.for_table("u_custom_table")
        .with_data({"param1": "one"})
        .with_projection(["field1", "field2"])
        .get_request_descriptor()
    )

    assert descriptor.params == {"param1": "one", "projection": "field1,field2"}
    assert descriptor.url == "/ws/schema/table/u_custom_table"


def test_page_size_without_projection(client):
    params = (
        client.page_size(19).set_data_item("param1", "one").without_projection().build_params()
    )

    assert params == {"param1": "one", "pagesize": 19}


def test_sort_with_string_descending(client):
    params = client.method("post").sort("last_name", True).build_params()

    assert params == {"sort": "last_name", "sortdescending": "true"}


def test_sort_with_list_defaults_ascending(client):
    params = client.method("post").sort(["last_name", "first_name"]).build_params()

    assert params == {"sort": "last_name,first_name", "sortdescending": "false"}


def test_page_survives_endpoint_change(client):
    descriptor = client.page(7).to_endpoint("/ws/v1/metadata").get_request_descriptor()

    assert descriptor.params == {"page": 7}
    assert descriptor.method == "GET"
    assert client.request_config.page_key == "metadata"


def test_convenience_setters_map_to_params_and_body(client):
    client.pq("com.pearson.core.student.search")
    client.filter("grade_level==9").order("last_name").include_count()
    client.expansions(["demographics", "addresses"]).extensions("s_stu_x")
    client.q("id=gt=1").data_version(12, "myapp")

    descriptor = client.get_request_descriptor()

    assert descriptor.params == {
        "$q": "grade_level==9",
        "order": "last_name",
        "count": "true",
        "expansions": "demographics,addresses",
        "extensions": "s_stu_x",
        "q": "id=gt=1",
    }
    assert descriptor.data == {"$dataversion": 12, "$dataversion_applicationname": "myapp"}


def test_include_projection_overrides_derived_flag(client):
    params = client.to("/ws/v1/district/school").include_projection().build_params()

    assert params == {"projection": "*"}


def test_data_subscription_targets_dataversion_endpoint(client):
    descriptor = client.data_subscription("myapp", 5).get_request_descriptor()

    assert descriptor.url == "/ws/dataversion/myapp/5"
    assert descriptor.method == "GET"


def test_headers_carry_bearer_token_and_json_types():
    client = PowerSchoolClient(BASE_URL, "id", "secret", access_token="abc123")

    headers = client.table("students").get_request_descriptor().headers

    assert headers["Authorization"] == "Bearer abc123"
    assert headers["Accept"] == "application/json"
    assert headers["Content-Type"] == "application/json"


def test_descriptor_as_dict_shape(client):
    descriptor = client.table("students").get_request_descriptor().as_dict()

    assert set(descriptor) == {"url", "method", "headers", "params", "data"}


def test_invalid_method_rejected(client):
    with pytest.raises(ValueError):
        client.set_method("TRACE")


def test_cast_helpers_exposed_on_client(client):
    assert client.cast_value_to_string(True) == "1"
    assert client.cast_value_to_string(None) == ""
    assert client.cast_value_to_string([1, 2]) == "1,2"
    assert PowerSchoolClient.cast_values_to_string({"a": {"b": False}}) == {"a": {"b": "0"}}


def test_reset_restores_defaults(client):
    client.table("students").q("id=gt=1").set_data_item("x", 1).method("PUT").reset()

    descriptor = client.get_request_descriptor()

    assert descriptor.url == ""
    assert descriptor.method == "GET"
    assert descriptor.params == {}
    assert descriptor.data == {}
