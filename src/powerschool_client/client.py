"""Fluent PowerSchool REST client."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import requests
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from .auth import BasicAuth, BearerAuth, fetch_access_token
from .casting import (
    ParamValue,
    cast_value_to_string,
    cast_values_to_string,
    encode_query_params,
    join_values,
    parse_query_string,
)
from .config import HTTP_METHODS, ClientConfig, RequestConfig, RequestDescriptor
from .endpoints import (
    RECORD_PAGE_KEY,
    data_version_path,
    derive_from_endpoint,
    named_query_path,
    table_path,
)
from .exceptions import TransportError, UnexpectedResponseError
from .http import HttpResponse
from .http import request as http_request
from .response import PowerSchoolResponse


logger = logging.getLogger(__name__)


class PowerSchoolClient:
    """Build and send authenticated PowerSchool requests.

    Configuration methods mutate the pending request and return the client,
    so calls chain::

        client.table("u_custom_table").q("id=gt=10").page(2).get()

    Every terminal call resets the pending request; the access token is kept
    for the next request.
    """

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        *,
        verify_ssl: bool | str = True,
        timeout: float = 30.0,
        default_headers: Mapping[str, str] | None = None,
        session: requests.Session | None = None,
        access_token: str | None = None,
    ) -> None:
        self.config = ClientConfig(
            base_url=base_url.rstrip("/"),
            client_id=client_id,
            client_secret=client_secret,
            verify_ssl=verify_ssl,
            timeout=timeout,
            default_headers=default_headers,
        )
        self._suppress_insecure_warning_if_needed()
        self._session = session or requests.Session()
        self._credentials = BasicAuth(client_id, client_secret)
        self._bearer = BearerAuth(access_token)
        self._request = RequestConfig()

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> PowerSchoolClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - passthrough
        self.close()

    def close(self) -> None:
        self._session.close()

    # Token management --------------------------------------------------------
    @property
    def access_token(self) -> str | None:
        return self._bearer.token

    def token_set(self) -> bool:
        return self._bearer.is_set

    def set_token(self, token: str) -> PowerSchoolClient:
        self._bearer.update_token(token)
        return self

    def retrieve_token(self, force: bool = False) -> PowerSchoolClient:
        """Fetch an access token unless one is already held.

        ``force`` re-runs the exchange even when a token is present. The held
        token is only replaced once the exchange succeeds.
        """
        if self.token_set() and not force:
            logger.debug("Reusing held PowerSchool access token")
            return self
        token = fetch_access_token(
            self._session,
            self.config.base_url,
            self._credentials,
            timeout=self.config.timeout,
            verify=self.config.verify_ssl,
        )
        return self.set_token(token)

    # Pending request state ---------------------------------------------------
    @property
    def request_config(self) -> RequestConfig:
        return self._request

    def set_config(self, config: RequestConfig | None = None) -> PowerSchoolClient:
        self._request = config or RequestConfig()
        return self

    def reset(self) -> PowerSchoolClient:
        return self.set_config()

    # Endpoint configuration --------------------------------------------------
    def set_endpoint(self, endpoint: str) -> PowerSchoolClient:
        """Set the request path and re-derive table, id, projection and page key."""
        traits = derive_from_endpoint(endpoint)
        self._request.endpoint = traits.endpoint
        self._request.table_name = traits.table_name
        self._request.record_id = traits.record_id
        self._request.include_projection = traits.projection_default
        self._request.page_key = traits.page_key
        return self

    def to_endpoint(self, endpoint: str) -> PowerSchoolClient:
        return self.set_endpoint(endpoint)

    def to(self, endpoint: str) -> PowerSchoolClient:
        return self.set_endpoint(endpoint)

    def endpoint(self, endpoint: str) -> PowerSchoolClient:
        return self.set_endpoint(endpoint)

    def set_table(self, table: str) -> PowerSchoolClient:
        """Target a table by name or by its full ``/ws/schema/table`` path."""
        self.set_endpoint(table_path(table))
        self._request.include_projection = True
        self._request.page_key = RECORD_PAGE_KEY
        return self

    def table(self, table: str) -> PowerSchoolClient:
        return self.set_table(table)

    def for_table(self, table: str) -> PowerSchoolClient:
        return self.set_table(table)

    def against_table(self, table: str) -> PowerSchoolClient:
        return self.set_table(table)

    def set_id(self, record_id: int | str) -> PowerSchoolClient:
        """Append a record id to the endpoint, which should already be set."""
        return self.set_endpoint(f"{self._request.endpoint or ''}/{record_id}")

    def id(self, record_id: int | str) -> PowerSchoolClient:
        return self.set_id(record_id)

    def for_id(self, record_id: int | str) -> PowerSchoolClient:
        return self.set_id(record_id)

    def set_named_query(
        self, name: str, data: Mapping[str, Any] | None = None
    ) -> PowerSchoolClient:
        """Target a PowerQuery; the ``/ws/schema/query`` prefix may be omitted.

        Named queries are always POSTed. A non-empty ``data`` becomes the body.
        """
        self.set_endpoint(named_query_path(name))
        self._request.page_key = RECORD_PAGE_KEY
        self.set_method("POST")
        if data:
            self.set_data(data)
        return self

    def named_query(self, name: str, data: Mapping[str, Any] | None = None) -> PowerSchoolClient:
        return self.set_named_query(name, data)

    def power_query(self, name: str, data: Mapping[str, Any] | None = None) -> PowerSchoolClient:
        return self.set_named_query(name, data)

    def pq(self, name: str, data: Mapping[str, Any] | None = None) -> PowerSchoolClient:
        return self.set_named_query(name, data)

    def data_subscription(self, application_name: str, version: int | str) -> PowerSchoolClient:
        """Target the data-version subscription endpoint for an application."""
        self.set_endpoint(data_version_path(application_name, version))
        return self.set_method("GET")

    def set_method(self, method: str) -> PowerSchoolClient:
        normalized = method.upper()
        if normalized not in HTTP_METHODS:
            raise ValueError(
                f"Invalid HTTP method: {method}. Supported methods: {', '.join(HTTP_METHODS)}"
            )
        self._request.method = normalized
        return self

    def method(self, method: str) -> PowerSchoolClient:
        return self.set_method(method)

    # Body and query parameters -----------------------------------------------
    def set_data(self, data: Mapping[str, Any]) -> PowerSchoolClient:
        """Replace the body. GET requests send it as query parameters instead."""
        self._request.data = dict(data)
        return self

    def with_data(self, data: Mapping[str, Any]) -> PowerSchoolClient:
        return self.set_data(data)

    def set_data_item(self, key: str, value: Any) -> PowerSchoolClient:
        self._request.data[key] = value
        return self

    def with_query_params(self, query_params: str | Mapping[str, Any]) -> PowerSchoolClient:
        """Replace the query parameters from a mapping or a URL-encoded string."""
        if isinstance(query_params, str):
            self._request.params = parse_query_string(query_params)
        else:
            self._request.params = dict(query_params)
        return self

    def query(self, query_params: str | Mapping[str, Any]) -> PowerSchoolClient:
        return self.with_query_params(query_params)

    def add_query_param(self, key: str, value: Any) -> PowerSchoolClient:
        self._request.params[key] = value
        return self

    def q(self, expression: str) -> PowerSchoolClient:
        return self.add_query_param("q", expression)

    def query_expression(self, expression: str) -> PowerSchoolClient:
        return self.q(expression)

    def ad_hoc_filter(self, expression: str) -> PowerSchoolClient:
        """Filter a PowerQuery result with the ``$q`` parameter."""
        return self.add_query_param("$q", expression)

    def filter(self, expression: str) -> PowerSchoolClient:
        return self.ad_hoc_filter(expression)

    def projection(self, projection: str | Sequence[str] = "*") -> PowerSchoolClient:
        return self.add_query_param("projection", join_values(projection))

    def with_projection(self, projection: str | Sequence[str] = "*") -> PowerSchoolClient:
        return self.projection(projection)

    def exclude_projection(self) -> PowerSchoolClient:
        """Drop the default ``projection=*``; some endpoints reject it."""
        self._request.include_projection = False
        return self

    def without_projection(self) -> PowerSchoolClient:
        return self.exclude_projection()

    def include_projection(self) -> PowerSchoolClient:
        self._request.include_projection = True
        return self

    def page(self, page: int) -> PowerSchoolClient:
        return self.add_query_param("page", page)

    def page_size(self, page_size: int) -> PowerSchoolClient:
        return self.add_query_param("pagesize", page_size)

    def sort(self, columns: str | Sequence[str], descending: bool = False) -> PowerSchoolClient:
        self.add_query_param("sort", join_values(columns))
        return self.add_query_param("sortdescending", "true" if descending else "false")

    def ad_hoc_order(self, expression: str) -> PowerSchoolClient:
        return self.add_query_param("order", expression)

    def order(self, expression: str) -> PowerSchoolClient:
        return self.ad_hoc_order(expression)

    def include_count(self) -> PowerSchoolClient:
        return self.add_query_param("count", "true")

    def expansions(self, expansions: str | Sequence[str]) -> PowerSchoolClient:
        return self.add_query_param("expansions", join_values(expansions))

    def extensions(self, extensions: str | Sequence[str]) -> PowerSchoolClient:
        return self.add_query_param("extensions", join_values(extensions))

    def data_version(self, version: int | str, application_name: str) -> PowerSchoolClient:
        self.set_data_item("$dataversion", version)
        return self.set_data_item("$dataversion_applicationname", application_name)

    # Value normalization -----------------------------------------------------
    @staticmethod
    def cast_value_to_string(value: ParamValue) -> str:
        return cast_value_to_string(value)

    @staticmethod
    def cast_values_to_string(data: Mapping[str, Any]) -> dict[str, Any]:
        return cast_values_to_string(data)

    # Assembly ----------------------------------------------------------------
    def build_params(self) -> dict[str, Any]:
        """Merge projection default, GET body and explicit params, in that order."""
        params: dict[str, Any] = {}
        if self._request.include_projection:
            params["projection"] = "*"
        if self._request.method == "GET":
            params.update(self._request.data)
        params.update(self._request.params)
        return params

    def get_request_descriptor(self) -> RequestDescriptor:
        headers = self.config.resolved_headers()
        self._bearer.apply(headers)
        return RequestDescriptor(
            url=self._request.endpoint or "",
            method=self._request.method,
            headers=headers,
            params=self.build_params(),
            data=dict(self._request.data),
        )

    # Terminal operations -----------------------------------------------------
    def send(self) -> PowerSchoolResponse:
        """Send the pending request, then reset it whatever the outcome."""
        try:
            self.retrieve_token()
            descriptor = self.get_request_descriptor()
            self._log_request(descriptor)
            response = self._perform_request(descriptor)
            if response.data is not None and not isinstance(response.data, Mapping):
                raise UnexpectedResponseError(
                    "PowerSchool response body was not a JSON object",
                    status_code=response.status_code,
                    details=response.data,
                )
            return PowerSchoolResponse(response.data)
        finally:
            self.reset()

    def get(self, endpoint: str | None = None) -> PowerSchoolResponse:
        return self._dispatch("GET", endpoint)

    def delete(self, endpoint: str | None = None) -> PowerSchoolResponse:
        return self._dispatch("DELETE", endpoint)

    def post(
        self, endpoint: str | None = None, data: Mapping[str, Any] | None = None
    ) -> PowerSchoolResponse:
        return self._dispatch("POST", endpoint, data)

    def put(
        self, endpoint: str | None = None, data: Mapping[str, Any] | None = None
    ) -> PowerSchoolResponse:
        return self._dispatch("PUT", endpoint, data)

    def patch(
        self, endpoint: str | None = None, data: Mapping[str, Any] | None = None
    ) -> PowerSchoolResponse:
        return self._dispatch("PATCH", endpoint, data)

    def count(self) -> PowerSchoolResponse:
        """Count the records of the current table endpoint."""
        self.set_endpoint(f"{self._request.endpoint or ''}/count")
        self.exclude_projection()
        return self._dispatch("GET", None)

    # Internal helpers -------------------------------------------------------
    def _dispatch(
        self,
        method: str,
        endpoint: str | None,
        data: Mapping[str, Any] | None = None,
    ) -> PowerSchoolResponse:
        if endpoint is not None:
            self.set_endpoint(endpoint)
        if data is not None:
            self.set_data(data)
        self.set_method(method)
        return self.send()

    def _perform_request(self, descriptor: RequestDescriptor) -> HttpResponse:
        url = f"{self.config.base_url}{descriptor.url}"
        params = encode_query_params(descriptor.params)
        try:
            return http_request(
                self._session,
                descriptor.method,
                url,
                params=params,
                headers=dict(descriptor.headers),
                json_payload=self._json_payload(descriptor),
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        except requests.RequestException as exc:
            reason = str(exc).strip() or exc.__class__.__name__
            raise TransportError(
                f"Failed to communicate with PowerSchool API: {reason}", details=reason
            ) from exc

    @staticmethod
    def _json_payload(descriptor: RequestDescriptor) -> Mapping[str, Any] | None:
        if descriptor.method == "GET":
            return None
        if descriptor.method == "DELETE" and not descriptor.data:
            return None
        return descriptor.data

    def _log_request(self, descriptor: RequestDescriptor) -> None:
        logger.info(
            "PowerSchool request %s %s (table=%s)",
            descriptor.method,
            descriptor.url or "/",
            self._request.table_name or "none",
        )

    def _suppress_insecure_warning_if_needed(self) -> None:
        if isinstance(self.config.verify_ssl, bool) and not self.config.verify_ssl:
            urllib3.disable_warnings(InsecureRequestWarning)
