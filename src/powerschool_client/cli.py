"""Command-line interface for querying PowerSchool."""
from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import typer

try:  # pragma: no cover - exercised in runtime environments
    from rich import box
    from rich.console import Console
    from rich.table import Table
except ImportError as exc:  # pragma: no cover - optional dependency guard
    raise RuntimeError(
        "The CLI requires Rich for table rendering. Install the CLI extras via "
        "'pip install powerschool-python[cli]' to enable this command."
    ) from exc

from . import PowerSchoolClient, PowerSchoolResponse
from .cli_schema import TableView, flatten_record, record_view
from .exceptions import AuthenticationError, PowerSchoolError, TransportError

app = typer.Typer(help="PowerSchool REST API CLI.", no_args_is_help=True)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log requests to stderr at INFO level."
    ),
) -> None:
    """Query PowerSchool tables, PowerQueries and arbitrary endpoints."""

    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )


def _build_client(
    base_url: str,
    client_id: str | None,
    client_secret: str | None,
    token: str | None,
    verify_ssl: bool,
    cert_path: Path | None,
    timeout: float,
) -> PowerSchoolClient:
    if not token and (not client_id or not client_secret):
        raise typer.BadParameter(
            "--client-id and --client-secret are required unless --token is given."
        )

    verify_target: bool | str
    if cert_path:
        expanded_cert = cert_path.expanduser()
        if not expanded_cert.exists():
            raise typer.BadParameter("Certificate file not found for --cert option.")
        if not verify_ssl:
            raise typer.BadParameter("Cannot combine --cert with --no-verify.")
        verify_target = str(expanded_cert)
    else:
        verify_target = verify_ssl

    return PowerSchoolClient(
        base_url,
        client_id or "",
        client_secret or "",
        verify_ssl=verify_target,
        timeout=timeout,
        access_token=token,
    )


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


console = Console(force_terminal=False, color_system=None)


def _render_rich_table(view: TableView, rows: Sequence[Mapping[str, Any]]) -> None:
    table = Table(
        title=view.title,
        box=box.SIMPLE,
        show_lines=False,
        header_style="bold cyan",
    )
    for column in view.columns:
        table.add_column(column.header)
    for row in rows:
        table.add_row(*(column.render(row) for column in view.columns))
    console.print(table)


def _present_output(
    response: PowerSchoolResponse,
    *,
    page_key: str | None,
    title: str,
    json_output: bool,
) -> None:
    payload = dict(response.raw_data)
    records = payload.get(page_key) if page_key else None
    if isinstance(records, Mapping):
        records = [records]
    if json_output or not isinstance(records, list):
        _echo_json(payload)
        return
    rows = [flatten_record(item) for item in records if isinstance(item, Mapping)]
    if not rows:
        _echo_json(payload)
        return
    _render_rich_table(record_view(title, rows), rows)


def _handle_error(exc: PowerSchoolError) -> None:
    if isinstance(exc, AuthenticationError):
        message = f"Authentication failed: {exc}"
    else:
        message = f"Request failed (status {exc.status_code}): {exc}"
    if exc.details and isinstance(exc, TransportError):
        message += f"\nDetails: {exc.details}"
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _parse_pairs(pairs: Sequence[str], *, coerce: bool) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'.")
        key, value = pair.split("=", 1)
        key = key.strip()
        if not key:
            raise typer.BadParameter(f"Missing key in '{pair}'.")
        result[key] = _coerce_simple(value) if coerce else value
    return result


def _coerce_simple(value: str):
    v = value.strip()
    if not v:
        return ""
    low = v.lower()
    if low in {"true", "yes", "on"}:
        return True
    if low in {"false", "no", "off"}:
        return False
    if low in {"null", "none"}:
        return None
    try:
        if "." in v:
            return float(v)
        return int(v)
    except ValueError:
        return v


def _shared_options() -> dict[str, Any]:  # pragma: no cover - helper indirection
    # Respect PS_VERIFY_SSL when present; accepts 1/0, true/false, yes/no, on/off.
    env_verify = os.getenv("PS_VERIFY_SSL")
    if env_verify is None:
        default_verify = True
    else:
        default_verify = env_verify.strip().lower() not in {"0", "false", "no", "off"}

    return {
        "base_url": typer.Option(
            ..., "--base-url", envvar="PS_URL", help="PowerSchool server URL."
        ),
        "client_id": typer.Option(
            None,
            "--client-id",
            envvar="PS_CLIENT_ID",
            help="Plugin client ID for the client-credentials grant.",
        ),
        "client_secret": typer.Option(
            None,
            "--client-secret",
            envvar="PS_CLIENT_SECRET",
            help="Plugin client secret for the client-credentials grant.",
            hide_input=True,
        ),
        "token": typer.Option(
            None,
            "--token",
            envvar="PS_TOKEN",
            help="Previously issued access token; skips the token exchange.",
        ),
        "verify_ssl": typer.Option(
            default_verify,
            "--verify/--no-verify",
            envvar="PS_VERIFY_SSL",
            help="Enable or disable TLS certificate verification.",
            show_default=True,
        ),
        "cert_path": typer.Option(
            None,
            "--cert",
            envvar="PS_CA_CERT",
            help="Path to a custom CA bundle for TLS verification.",
        ),
        "timeout": typer.Option(30.0, help="Request timeout (seconds).", show_default=True),
        "output_json": typer.Option(
            False,
            "--json",
            "-j",
            help="Return raw JSON instead of rendering a table.",
        ),
        "page": typer.Option(None, "--page", help="Page number to fetch."),
        "page_size": typer.Option(None, "--page-size", help="Records per page."),
    }


_SHARED_OPTIONS = _shared_options()


def _apply_paging(client: PowerSchoolClient, page: int | None, page_size: int | None) -> None:
    if page is not None:
        client.page(page)
    if page_size is not None:
        client.page_size(page_size)


@app.command("token")
def token_command(
    base_url: str = _SHARED_OPTIONS["base_url"],
    client_id: str | None = _SHARED_OPTIONS["client_id"],
    client_secret: str | None = _SHARED_OPTIONS["client_secret"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Exchange client credentials for an access token."""

    with _build_client(
        base_url, client_id, client_secret, None, verify_ssl, cert_path, timeout
    ) as client:
        try:
            client.retrieve_token()
        except PowerSchoolError as exc:
            _handle_error(exc)
            return
        _echo_json({"access_token": client.access_token})


@app.command("get")
def get_command(
    endpoint: str = typer.Argument(..., help="Endpoint path, e.g. /ws/v1/district/school."),
    param: list[str] = typer.Option([], "--param", help="Query parameter in key=value form."),
    projection: str | None = typer.Option(None, "--projection", help="Comma-separated fields."),
    no_projection: bool = typer.Option(
        False, "--no-projection", help="Omit the default projection=* on table paths."
    ),
    base_url: str = _SHARED_OPTIONS["base_url"],
    client_id: str | None = _SHARED_OPTIONS["client_id"],
    client_secret: str | None = _SHARED_OPTIONS["client_secret"],
    token: str | None = _SHARED_OPTIONS["token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
    page: int | None = _SHARED_OPTIONS["page"],
    page_size: int | None = _SHARED_OPTIONS["page_size"],
) -> None:
    """GET an arbitrary endpoint."""

    params = _parse_pairs(param, coerce=False)
    with _build_client(
        base_url, client_id, client_secret, token, verify_ssl, cert_path, timeout
    ) as client:
        client.set_endpoint(endpoint).with_query_params(params)
        if projection:
            client.projection(projection)
        if no_projection:
            client.exclude_projection()
        _apply_paging(client, page, page_size)
        page_key = client.request_config.page_key
        try:
            response = client.get()
        except PowerSchoolError as exc:
            _handle_error(exc)
            return
    _present_output(response, page_key=page_key, title=endpoint, json_output=output_json)


@app.command("table")
def table_command(
    name: str = typer.Argument(..., help="Table name, e.g. u_custom_table."),
    record_id: int | None = typer.Option(None, "--id", help="Fetch a single record by id."),
    q: str | None = typer.Option(None, "--q", help="Query expression, e.g. id=gt=100."),
    projection: str | None = typer.Option(None, "--projection", help="Comma-separated fields."),
    sort: str | None = typer.Option(None, "--sort", help="Comma-separated sort columns."),
    descending: bool = typer.Option(False, "--descending", help="Sort descending."),
    base_url: str = _SHARED_OPTIONS["base_url"],
    client_id: str | None = _SHARED_OPTIONS["client_id"],
    client_secret: str | None = _SHARED_OPTIONS["client_secret"],
    token: str | None = _SHARED_OPTIONS["token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
    page: int | None = _SHARED_OPTIONS["page"],
    page_size: int | None = _SHARED_OPTIONS["page_size"],
) -> None:
    """Read records from a table."""

    with _build_client(
        base_url, client_id, client_secret, token, verify_ssl, cert_path, timeout
    ) as client:
        client.set_table(name)
        if record_id is not None:
            client.set_id(record_id)
        if q:
            client.q(q)
        if projection:
            client.projection(projection)
        if sort:
            client.sort(sort.split(","), descending)
        _apply_paging(client, page, page_size)
        table_name = client.request_config.table_name or name
        page_key = client.request_config.page_key
        try:
            response = client.get()
        except PowerSchoolError as exc:
            _handle_error(exc)
            return
    if record_id is not None:
        # single-record responses carry no record list
        _echo_json(dict(response.raw_data))
        return
    _present_output(response, page_key=page_key, title=table_name, json_output=output_json)


@app.command("count")
def count_command(
    name: str = typer.Argument(..., help="Table name."),
    q: str | None = typer.Option(None, "--q", help="Query expression to count against."),
    base_url: str = _SHARED_OPTIONS["base_url"],
    client_id: str | None = _SHARED_OPTIONS["client_id"],
    client_secret: str | None = _SHARED_OPTIONS["client_secret"],
    token: str | None = _SHARED_OPTIONS["token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Count the records of a table."""

    with _build_client(
        base_url, client_id, client_secret, token, verify_ssl, cert_path, timeout
    ) as client:
        client.set_table(name)
        if q:
            client.q(q)
        try:
            response = client.count()
        except PowerSchoolError as exc:
            _handle_error(exc)
            return
    _echo_json(dict(response.raw_data))


@app.command("query")
def query_command(
    name: str = typer.Argument(..., help="PowerQuery name, e.g. com.pearson.core.student.search."),
    data: list[str] = typer.Option([], "--data", help="Query argument in key=value form."),
    filter_expression: str | None = typer.Option(
        None, "--filter", help="Ad-hoc filter ($q) applied to the results."
    ),
    order: str | None = typer.Option(None, "--order", help="Ad-hoc order expression."),
    include_count: bool = typer.Option(False, "--count", help="Ask for the total count."),
    base_url: str = _SHARED_OPTIONS["base_url"],
    client_id: str | None = _SHARED_OPTIONS["client_id"],
    client_secret: str | None = _SHARED_OPTIONS["client_secret"],
    token: str | None = _SHARED_OPTIONS["token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
    page: int | None = _SHARED_OPTIONS["page"],
    page_size: int | None = _SHARED_OPTIONS["page_size"],
) -> None:
    """Run a named query (PowerQuery)."""

    body = _parse_pairs(data, coerce=True)
    with _build_client(
        base_url, client_id, client_secret, token, verify_ssl, cert_path, timeout
    ) as client:
        client.set_named_query(name, body)
        if filter_expression:
            client.filter(filter_expression)
        if order:
            client.order(order)
        if include_count:
            client.include_count()
        _apply_paging(client, page, page_size)
        page_key = client.request_config.page_key
        try:
            response = client.send()
        except PowerSchoolError as exc:
            _handle_error(exc)
            return
    _present_output(response, page_key=page_key, title=name, json_output=output_json)


@app.command("dataversion")
def dataversion_command(
    application_name: str = typer.Argument(..., help="Data-subscription application name."),
    version: int = typer.Argument(..., help="Last data version seen by the application."),
    base_url: str = _SHARED_OPTIONS["base_url"],
    client_id: str | None = _SHARED_OPTIONS["client_id"],
    client_secret: str | None = _SHARED_OPTIONS["client_secret"],
    token: str | None = _SHARED_OPTIONS["token"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Fetch changes for a data subscription since a version."""

    with _build_client(
        base_url, client_id, client_secret, token, verify_ssl, cert_path, timeout
    ) as client:
        try:
            response = client.data_subscription(application_name, version).send()
        except PowerSchoolError as exc:
            _handle_error(exc)
            return
    _echo_json(dict(response.raw_data))
