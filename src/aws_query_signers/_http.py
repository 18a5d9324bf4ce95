# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from urllib.parse import urlunparse

import aws_query_signers.interfaces.http as interfaces_http


@dataclass(kw_only=True, frozen=True)
class URI(interfaces_http.URI):
    """Universal Resource Identifier, target location for an :py:class:`AWSRequest`."""

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    host: str
    """The hostname, for example ``amazonaws.com``."""

    port: int | None = None
    """An explicit port number."""

    path: str | None = None
    """Path component of the URI."""

    query: str | None = None
    """Query component of the URI as string."""

    @property
    def netloc(self) -> str:
        """Construct netloc string in format ``{host}:{port}``

        ``port`` is only included if set.
        """
        if self.port is not None:
            return f"{self.host}:{self.port}"
        return self.host

    def build(self) -> str:
        """Construct URI string representation.

        Returns a string of the form ``{scheme}://{host}:{port}{path}?{query}``
        """
        components = (
            self.scheme,
            self.netloc,
            self.path or "",
            "",  # params
            self.query,
            "",  # fragment
        )
        return urlunparse(components)


@dataclass(kw_only=True)
class AWSRequest(interfaces_http.Request):
    """An outbound request: method, destination, ordered headers and body bytes.

    Header names keep the case they were given in. Lookups through
    :py:meth:`get_header` and :py:meth:`has_header` are case insensitive.
    """

    destination: URI
    method: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def get_header(self, name: str, default: str | None = None) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    def has_header(self, name: str) -> bool:
        return self.get_header(name) is not None

    def set_header(self, name: str, value: str) -> None:
        """Set a header, replacing any existing header that differs only in case."""
        lowered = name.lower()
        for key in [k for k in self.headers if k.lower() == lowered]:
            del self.headers[key]
        self.headers[name] = value

    def __deepcopy__(self, memo: dict[int, AWSRequest] | None = None) -> AWSRequest:
        if memo is None:
            memo = {}

        if id(self) in memo:
            return memo[id(self)]

        # the destination and body are immutable and don't need to be copied
        new_instance = self.__class__(
            destination=self.destination,
            method=self.method,
            headers=deepcopy(self.headers, memo),
            body=self.body,
        )
        memo[id(self)] = new_instance
        return new_instance
