# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class SigningError(Exception):
    """Top-level exception to capture signing-related errors."""


class ConfigurationError(SigningError, ValueError):
    """Credentials, region, service, or date are missing or malformed.

    Raised before any hashing takes place.
    """


class EncodingError(SigningError, ValueError):
    """A payload or header could not be represented in canonical form."""


class RemoteAuthError(SigningError):
    """The service rejected the request signature.

    Only raised at the transport boundary after the request was sent. A caller may
    re-sign with a corrected clock, but nothing in this package retries.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int,
        code: str | None = None,
        body: bytes = b"",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.body = body
