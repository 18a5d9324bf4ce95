# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import hmac
import logging
import threading
from collections import OrderedDict
from collections.abc import Mapping
from copy import deepcopy
from dataclasses import dataclass
from hashlib import sha256
from typing import Final
from urllib.parse import parse_qsl, quote

from ._context import (
    SIGV4_TERMINATOR,
    SIGV4_TIMESTAMP_FORMAT,
    SigningContext,
    SigV4SigningProperties,
)
from ._http import AWSRequest, URI
from ._identity import AWSCredentialIdentity
from .exceptions import ConfigurationError, EncodingError, SigningError
from .interfaces.identity import AWSCredentialsIdentity as _AWSCredentialsIdentity

logger: Final = logging.getLogger(__name__)

__all__ = (
    "EMPTY_SHA256_HASH",
    "HEADERS_EXCLUDED_FROM_SIGNING",
    "SIGV4_ALGORITHM",
    "SIGV4_TIMESTAMP_FORMAT",
    "SigV4Signer",
    "SigV4SigningProperties",
    "SigningKeyCache",
    "SigningOutcome",
    "authorization_header",
    "canonical_headers",
    "canonical_query",
    "canonical_request",
    "derive_signing_key",
    "payload_hash",
    "signature",
    "string_to_sign",
)

HEADERS_EXCLUDED_FROM_SIGNING: tuple[str, ...] = (
    "accept",
    "accept-encoding",
    "authorization",
    "connection",
    "expect",
    "user-agent",
    "x-amzn-trace-id",
)
DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

SIGV4_ALGORITHM: str = "AWS4-HMAC-SHA256"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

# RFC 3986 unreserved characters, in addition to alphanumerics
_UNRESERVED = "-_.~"


def _check_utf8(value: str, what: str) -> None:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(f"{what} is not representable as UTF-8.") from e


def payload_hash(body: bytes | str | None) -> str:
    """Lowercase hex SHA-256 digest of a request body."""
    if not body:
        return EMPTY_SHA256_HASH
    if isinstance(body, str):
        try:
            body = body.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodingError("Request payload is not representable as UTF-8.") from e
    return sha256(body).hexdigest()


def canonical_headers(headers: Mapping[str, str]) -> tuple[str, str]:
    """Build the canonical header block and the signed header list.

    Names are lower-cased, values are trimmed with inner whitespace runs collapsed
    to a single space, and entries are sorted by name. Every line, including the
    last, ends with a newline.

    :returns: A ``(canonical_headers, signed_headers)`` tuple.
    """
    normalized: dict[str, str] = {}
    for name, value in headers.items():
        if not isinstance(name, str) or not name:
            raise EncodingError(f"Invalid header name: {name!r}")
        if not isinstance(value, str):
            raise EncodingError(
                f"Header {name} must be a string, received {type(value)}."
            )
        _check_utf8(name, "Header name")
        _check_utf8(value, f"Header {name}")
        lowered = name.lower()
        if lowered in HEADERS_EXCLUDED_FROM_SIGNING:
            continue
        normalized[lowered] = " ".join(value.split())

    ordered = sorted(normalized.items())
    block = "".join(f"{name}:{value}\n" for name, value in ordered)
    return block, ";".join(name for name, _ in ordered)


def canonical_query(query: str | None) -> str:
    if not query:
        return ""
    _check_utf8(query, "Query string")

    query_params = parse_qsl(qs=query, keep_blank_values=True)
    query_parts = (
        (quote(string=key, safe=_UNRESERVED), quote(string=value, safe=_UNRESERVED))
        for key, value in query_params
    )
    # key-value pairs must be in sorted order for their encoded forms.
    return "&".join(f"{key}={value}" for key, value in sorted(query_parts))


def canonical_request(
    method: str,
    uri: str,
    query_string: str,
    canonical_headers: str,
    signed_headers: str,
    payload_hash: str,
) -> str:
    """Lay out the canonical request.

    The SigV4 specification defines the canonical request to be:
        <HTTPMethod>\\n
        <CanonicalURI>\\n
        <CanonicalQueryString>\\n
        <CanonicalHeaders>\\n
        <SignedHeaders>\\n
        <HashedPayload>

    ``canonical_headers`` already ends in a newline, so the block is followed by an
    empty line before the signed headers.
    """
    return (
        f"{method.upper()}\n"
        f"{uri}\n"
        f"{query_string}\n"
        f"{canonical_headers}\n"
        f"{signed_headers}\n"
        f"{payload_hash}"
    )


def _hmac(key: bytes, value: str) -> bytes:
    return hmac.new(key=key, msg=value.encode("utf-8"), digestmod=sha256).digest()


def derive_signing_key(
    secret_access_key: str, date_stamp: str, region: str, service: str
) -> bytes:
    """Derive the request-scoped signing key.

    Every intermediate key stays raw bytes; hex encoding any of them produces a key
    the service will not accept.
    """
    # DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
    # DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
    # DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
    # SigningKey           = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
    k_date = _hmac(f"AWS4{secret_access_key}".encode(), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, SIGV4_TERMINATOR)


def string_to_sign(amz_date: str, credential_scope: str, canonical_request: str) -> str:
    """The SigV4 specification defines the string to sign as:
        Algorithm \\n
        RequestDateTime \\n
        CredentialScope  \\n
        HashedCanonicalRequest
    """
    _check_utf8(canonical_request, "Canonical request")
    return (
        f"{SIGV4_ALGORITHM}\n"
        f"{amz_date}\n"
        f"{credential_scope}\n"
        f"{sha256(canonical_request.encode()).hexdigest()}"
    )


def signature(signing_key: bytes, string_to_sign: str) -> str:
    return _hmac(signing_key, string_to_sign).hex()


def authorization_header(
    access_key_id: str, credential_scope: str, signed_headers: str, signature: str
) -> str:
    return (
        f"{SIGV4_ALGORITHM} Credential={access_key_id}/{credential_scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )


class SigningKeyCache:
    """Bounded cache of derived signing keys.

    Entries are keyed by a fingerprint of the secret plus the date stamp, region and
    service the key was derived for, so a new UTC day always derives a new key. The
    cache is never shared implicitly; pass an instance to :py:class:`SigV4Signer`.
    """

    def __init__(self, max_size: int = 32) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._keys: OrderedDict[tuple[str, str, str, str], bytes] = OrderedDict()
        self._lock = threading.Lock()

    def get(
        self, secret_access_key: str, date_stamp: str, region: str, service: str
    ) -> bytes:
        fingerprint = sha256(secret_access_key.encode()).hexdigest()
        cache_key = (fingerprint, date_stamp, region, service)
        with self._lock:
            if cache_key in self._keys:
                self._keys.move_to_end(cache_key)
                return self._keys[cache_key]

        key = derive_signing_key(secret_access_key, date_stamp, region, service)
        with self._lock:
            self._keys[cache_key] = key
            self._keys.move_to_end(cache_key)
            while len(self._keys) > self._max_size:
                self._keys.popitem(last=False)
        return key

    def clear(self) -> None:
        with self._lock:
            self._keys.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)


@dataclass(frozen=True)
class SigningOutcome:
    """Result of :py:meth:`SigV4Signer.try_sign`.

    Exactly one of ``request`` and ``error`` is set.
    """

    request: AWSRequest | None = None
    error: SigningError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SigV4Signer:
    """Request signer for applying the AWS Signature Version 4 algorithm."""

    def __init__(self, *, key_cache: SigningKeyCache | None = None) -> None:
        """
        :param key_cache: An optional cache for derived signing keys. Without one,
            every call derives a fresh key.
        """
        self._key_cache = key_cache

    def sign(
        self,
        *,
        properties: SigV4SigningProperties,
        request: AWSRequest,
        identity: AWSCredentialIdentity,
    ) -> AWSRequest:
        """Generate and apply a SigV4 Signature to a copy of the supplied request.

        :param properties: SigV4SigningProperties to define signing primitives
            such as the target service, region, and date.
        :param request: An AWSRequest to sign prior to sending to the service.
        :param identity: A set of credentials representing an AWS Identity or role
            capacity.
        """
        # Copy and prepopulate any missing values in the
        # supplied request and signing properties.
        self._validate_identity(identity=identity)
        self._validate_properties(properties=properties)
        context = SigningContext.from_properties(properties)

        new_request = deepcopy(request)
        self._apply_required_headers(request=new_request, context=context)

        # Construct core signing components
        creq = self.canonical_request(context=context, request=new_request)
        sts = self.string_to_sign(context=context, canonical_request=creq)
        logger.debug("Canonical request:\n%s", creq)
        logger.debug("String to sign:\n%s", sts)

        signing_key = self._signing_key(
            secret_access_key=identity.secret_access_key, context=context
        )
        _, signed_headers = canonical_headers(new_request.headers)
        new_request.set_header(
            "Authorization",
            authorization_header(
                access_key_id=identity.access_key_id,
                credential_scope=context.credential_scope,
                signed_headers=signed_headers,
                signature=signature(signing_key, sts),
            ),
        )
        return new_request

    def try_sign(
        self,
        *,
        properties: SigV4SigningProperties,
        request: AWSRequest,
        identity: AWSCredentialIdentity,
    ) -> SigningOutcome:
        """Sign like :py:meth:`sign`, returning configuration and encoding failures
        as values instead of raising them."""
        try:
            signed = self.sign(properties=properties, request=request, identity=identity)
        except SigningError as e:
            return SigningOutcome(error=e)
        return SigningOutcome(request=signed)

    def canonical_request(self, *, context: SigningContext, request: AWSRequest) -> str:
        """The canonical request is a standardized string laying out the components used
        in the SigV4 signing algorithm. This is useful to quickly compare inputs to find
        signature mismatches and unintended variances.

        :param context: The date and scope of the signing operation.
        :param request: An AWSRequest to use for generating a SigV4 signature.
        """
        headers = dict(request.headers)
        if not request.has_header("host"):
            headers["host"] = self._normalize_host(uri=request.destination)
        header_block, signed_headers = canonical_headers(headers)
        return canonical_request(
            method=request.method,
            uri=self._format_canonical_path(request.destination.path),
            query_string=canonical_query(request.destination.query),
            canonical_headers=header_block,
            signed_headers=signed_headers,
            payload_hash=payload_hash(request.body),
        )

    def string_to_sign(self, *, context: SigningContext, canonical_request: str) -> str:
        """The string to sign concatenates the formal identifier of the signing
        algorithm, the signing DateTime, the scope of the credentials, and a hash of the
        canonical request. It is another checkpoint for verifying a signature is
        constructed as intended."""
        return string_to_sign(
            amz_date=context.amz_date,
            credential_scope=context.credential_scope,
            canonical_request=canonical_request,
        )

    def _signing_key(self, *, secret_access_key: str, context: SigningContext) -> bytes:
        if self._key_cache is not None:
            return self._key_cache.get(
                secret_access_key, context.date_stamp, context.region, context.service
            )
        return derive_signing_key(
            secret_access_key, context.date_stamp, context.region, context.service
        )

    def _validate_identity(self, *, identity: AWSCredentialIdentity) -> None:
        """Perform runtime and expiration checks before attempting signing."""
        if not isinstance(identity, _AWSCredentialsIdentity):  # pyright: ignore
            raise ConfigurationError(
                "Received unexpected value for identity parameter. Expected "
                f"AWSCredentialIdentity but received {type(identity)}."
            )
        if not identity.access_key_id or not identity.secret_access_key:
            raise ConfigurationError(
                "Both access_key_id and secret_access_key must be non-empty."
            )
        if identity.is_expired:
            raise ConfigurationError(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def _validate_properties(self, *, properties: SigV4SigningProperties) -> None:
        for name in ("region", "service"):
            if not properties.get(name):
                raise ConfigurationError(f"Signing property {name!r} is required.")

    def _apply_required_headers(
        self, *, request: AWSRequest, context: SigningContext
    ) -> None:
        # Apply required X-Amz-Date if neither X-Amz-Date nor Date are present.
        if not request.has_header("Date") and not request.has_header("X-Amz-Date"):
            request.set_header("X-Amz-Date", context.amz_date)
        if not request.has_header("Host"):
            request.set_header("Host", self._normalize_host(uri=request.destination))

    def _normalize_host(self, *, uri: URI) -> str:
        if uri.port is not None and DEFAULT_PORTS.get(uri.scheme) == uri.port:
            return uri.host
        return uri.netloc

    def _format_canonical_path(self, path: str | None) -> str:
        if not path:
            return "/"
        _check_utf8(path, "Request path")
        return quote(string=path, safe="/" + _UNRESERVED)
