"""Thin JSON-over-HTTP client shared by both providers and the FoD token exchange."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from fortify_report.config import settings
from fortify_report.errors.exceptions import (
    AuthError,
    FortifyError,
    NetworkError,
    ProtocolError,
)
from fortify_report.models.enums import ProviderKind

logger = logging.getLogger(__name__)

_AUTH_STATUSES = (401, 403)


class HttpRequester:
    """Issues one request per call and surfaces failures as ``FortifyError``.

    A fresh ``httpx.AsyncClient`` is opened per call. *transport* lets tests
    substitute an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        service_name: str,
        provider: ProviderKind | None = None,
        timeout: float | None = None,
        verify: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.service_name = service_name
        self.provider = provider
        self.timeout = settings.http_timeout if timeout is None else timeout
        self.verify = settings.verify_tls if verify is None else verify
        self._transport = transport

    async def get_json(
        self,
        url: str,
        headers: dict[str, str],
        params: dict[str, str] | None = None,
    ) -> Any:
        """GET *url* and return the decoded JSON body."""
        response = await self._send("GET", url, headers=headers, params=params)
        return self._decode(response)

    async def post_form(
        self,
        url: str,
        form: dict[str, str],
        headers: dict[str, str],
        error_fields: tuple[str, ...] = ("error_description", "error"),
        status_error: type[FortifyError] = AuthError,
    ) -> Any:
        """POST a url-encoded form and return the decoded JSON body.

        Any non-2xx status is raised as *status_error*, with the first of
        *error_fields* present in the body as the message.
        """
        response = await self._send(
            "POST",
            url,
            headers=headers,
            data=form,
            error_fields=error_fields,
            status_error=status_error,
        )
        return self._decode(response)

    async def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        error_fields: tuple[str, ...] = ("message", "error_description"),
        status_error: type[FortifyError] | None = None,
    ) -> httpx.Response:
        logger.debug("%s %s params=%s", method, url, params)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                verify=self.verify,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method, url, headers=headers, params=params, data=data,
                )
        except httpx.TimeoutException as exc:
            logger.error("%s request timed out: %s %s", self.service_name, method, url)
            raise NetworkError(
                f"Request timeout - {self.service_name} did not respond within "
                f"{self.timeout:g} seconds",
                provider=self.provider,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("%s network error for %s: %s", self.service_name, url, exc)
            raise NetworkError(f"Network error: {exc}", provider=self.provider) from exc

        logger.debug("HTTP %s from %s", response.status_code, url)
        if response.is_success:
            return response

        message = _error_message(response, error_fields)
        if status_error is None:
            status_error = AuthError if response.status_code in _AUTH_STATUSES else NetworkError
        logger.warning(
            "%s returned HTTP %s for %s: %s",
            self.service_name,
            response.status_code,
            url,
            message,
        )
        raise status_error(message, provider=self.provider, status_code=response.status_code)

    def _decode(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            logger.error(
                "Non-JSON response from %s: %s",
                self.service_name,
                response.text[:200],
            )
            raise ProtocolError(
                f"Invalid JSON response from {self.service_name}",
                provider=self.provider,
                status_code=response.status_code,
            ) from exc


def _error_message(response: httpx.Response, fields: tuple[str, ...]) -> str:
    """Pick the most descriptive error text from a failed response."""
    fallback = f"HTTP {response.status_code}: {response.reason_phrase}"
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        for field in fields:
            if body.get(field):
                return str(body[field])
    return fallback
