# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""The transport boundary for signed requests.

Dispatchers send a request exactly as it was signed. Connection handling, retries
and timeouts belong to the session the dispatcher is given.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Final, Protocol
from xml.etree import ElementTree

import aiohttp

from .._http import AWSRequest
from ..exceptions import RemoteAuthError
from ..interfaces.http import Response

logger: Final = logging.getLogger(__name__)

AUTH_FAILURE_STATUSES: frozenset[int] = frozenset({401, 403})


@dataclass(kw_only=True)
class DispatchResponse(Response):
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    reason: str | None = None


class RequestDispatcher(Protocol):
    async def send(self, *, request: AWSRequest) -> DispatchResponse:
        """Send a signed request and return the service response.

        :raises RemoteAuthError: If the service rejects the request signature.
        """
        ...


class AIOHTTPDispatcher:
    """Implementation of :py:class:`RequestDispatcher` using aiohttp."""

    def __init__(self, *, _session: aiohttp.ClientSession | None = None) -> None:
        """
        :param _session: An existing session to send requests through. The caller
            keeps ownership of it; only a session the dispatcher creates itself is
            closed by :py:meth:`close`.
        """
        self._session = _session
        self._owns_session = _session is None

    async def send(self, *, request: AWSRequest) -> DispatchResponse:
        session = self._session
        if session is None:
            session = self._session = aiohttp.ClientSession()
            self._owns_session = True

        logger.debug("Sending %s %s", request.method, request.destination.host)
        async with session.request(
            method=request.method,
            url=request.destination.build(),
            headers=request.headers,
            data=request.body,
        ) as resp:
            response = DispatchResponse(
                status=resp.status,
                headers=dict(resp.headers.items()),
                body=await resp.read(),
                reason=resp.reason,
            )
        logger.debug("Received %s from %s", response.status, request.destination.host)

        if response.status in AUTH_FAILURE_STATUSES:
            code, message = parse_error(response.body)
            logger.warning(
                "Request to %s was rejected with %s (%s)",
                request.destination.host,
                response.status,
                code,
            )
            raise RemoteAuthError(
                message or response.reason or "Request signature was rejected",
                status=response.status,
                code=code,
                body=response.body,
            )
        return response

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "AIOHTTPDispatcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def parse_error(body: bytes) -> tuple[str | None, str | None]:
    """Extract the AWS error code and message from an XML or JSON error body."""
    text = body.decode("utf-8", errors="replace").strip()
    if not text:
        return None, None

    if text.startswith("{"):
        try:
            data: Any = json.loads(text)
        except ValueError:
            return None, None
        error = data.get("Error", data) if isinstance(data, dict) else {}
        if not isinstance(error, dict):
            return None, None
        code = error.get("Code") or error.get("__type")
        message = error.get("Message") or error.get("message")
        return code, message

    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError:
        return None, None
    code = message = None
    for element in root.iter():
        tag = element.tag.rsplit("}", 1)[-1]
        if tag == "Code" and code is None:
            code = element.text
        elif tag == "Message" and message is None:
            message = element.text
    return code, message
