# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable


@runtime_checkable
class URI(Protocol):
    """Universal Resource Identifier, target location for a :py:class:`Request`."""

    scheme: str
    """For example ``http`` or ``https``."""

    host: str
    """The hostname, for example ``email.us-east-1.amazonaws.com``."""

    port: int | None
    """An explicit port number."""

    path: str | None
    """Path component of the URI."""

    query: str | None
    """Query component of the URI as string."""

    def build(self) -> str:
        """Construct URI string representation.

        Returns a string of the form ``{scheme}://{host}:{port}{path}?{query}``
        """
        ...

    @property
    def netloc(self) -> str:
        """Construct netloc string in format ``{host}:{port}``"""
        ...


class Request(Protocol):
    """Protocol-agnostic representation of a request."""

    method: str
    destination: URI
    headers: Mapping[str, str]
    body: bytes


class Response(Protocol):
    """The parts of a service response the dispatcher hands back."""

    status: int
    headers: Mapping[str, str]
    body: bytes
