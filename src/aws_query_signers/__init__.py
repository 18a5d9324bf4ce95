# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""AWS Query Signers provides stand-alone SigV4 signing for form-encoded AWS
query-style APIs such as SES and IAM."""

from __future__ import annotations

from ._context import SigningContext, SigV4SigningProperties, format_amz_date
from ._http import AWSRequest, URI
from ._identity import AWSCredentialIdentity, Credentials
from .config import SignerConfig
from .exceptions import ConfigurationError, EncodingError, RemoteAuthError, SigningError
from .flatten import encode_form, flatten_params
from .query import build_query_request
from .signers import (
    SigningKeyCache,
    SigningOutcome,
    SigV4Signer,
    derive_signing_key,
)

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "URI",
    "AWSCredentialIdentity",
    "AWSRequest",
    "ConfigurationError",
    "Credentials",
    "EncodingError",
    "RemoteAuthError",
    "SigV4Signer",
    "SigV4SigningProperties",
    "SignerConfig",
    "SigningContext",
    "SigningError",
    "SigningKeyCache",
    "SigningOutcome",
    "build_query_request",
    "derive_signing_key",
    "encode_form",
    "flatten_params",
    "format_amz_date",
)
