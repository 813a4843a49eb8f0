"""OAuth2 client-credentials exchange."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import requests

from ..endpoints import TOKEN_PATH
from ..exceptions import AuthenticationError, TransportError
from ..http import request as http_request
from .basic import BasicAuth

logger = logging.getLogger(__name__)

GRANT_BODY = "grant_type=client_credentials"


def fetch_access_token(
    session: requests.Session,
    base_url: str,
    credentials: BasicAuth,
    *,
    timeout: float | None = None,
    verify: bool | str = True,
) -> str:
    """Exchange client credentials for an access token.

    Raises `AuthenticationError` on any failure: a non-2xx status, a network
    error, a body that is not JSON, or a body without ``access_token``.
    """

    headers = {
        "Content-Type": "application/x-www-form-urlencoded;charset=UTF-8",
        "Accept": "application/json",
    }
    credentials.apply(headers)
    url = f"{base_url}{TOKEN_PATH}"
    try:
        response = http_request(
            session,
            "POST",
            url,
            headers=headers,
            data_payload=GRANT_BODY,
            timeout=timeout,
            verify=verify,
        )
    except TransportError as exc:
        raise AuthenticationError(
            f"Access token request failed: {exc}",
            status_code=exc.status_code,
            details=exc.details,
        ) from exc
    except requests.RequestException as exc:
        reason = str(exc).strip() or exc.__class__.__name__
        raise AuthenticationError(
            f"Failed to reach PowerSchool token endpoint: {reason}", details=reason
        ) from exc

    payload = response.data
    token = payload.get("access_token") if isinstance(payload, Mapping) else None
    if not isinstance(token, str) or not token:
        raise AuthenticationError(
            "PowerSchool token response did not include an access_token",
            status_code=response.status_code,
            details=payload,
        )
    logger.info("Retrieved PowerSchool access token (expires_in=%s)", payload.get("expires_in"))
    return token
