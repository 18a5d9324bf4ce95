# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Assembly of signed, form-encoded requests for AWS query-style APIs."""

from datetime import datetime

from ._context import format_amz_date
from ._http import AWSRequest, URI
from .config import SignerConfig
from .flatten import Params, encode_form, flatten_params
from .signers import SigV4Signer

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def build_query_request(
    config: SignerConfig,
    params: Params,
    *,
    now: datetime | None = None,
    signer: SigV4Signer | None = None,
) -> AWSRequest:
    """Flatten ``params`` into a form body and return a signed ``POST`` request.

    The request carries ``Content-Type``, ``X-Amz-Date``, ``Host``, ``Accept`` and
    ``Authorization`` headers. ``Accept`` is never signed, so the signed headers are
    ``content-type;host;x-amz-date``.

    :param config: Credentials, region and service for the target endpoint.
    :param params: The nested request parameters, e.g. ``{"Action": "SendEmail"}``.
    :param now: The signing time, the current UTC time when omitted.
    :param signer: The signer to use; a fresh one is created when omitted.
    """
    credentials = config.credentials()
    properties = credentials.signing_properties(
        date=format_amz_date(now) if now is not None else None
    )

    body = encode_form(flatten_params(params)).encode("utf-8")
    request = AWSRequest(
        destination=URI(host=config.host, path="/"),
        method="POST",
        headers={
            "Content-Type": FORM_CONTENT_TYPE,
            "Host": config.host,
            "Accept": "application/json",
        },
        body=body,
    )
    signer = signer or SigV4Signer()
    return signer.sign(
        properties=properties, request=request, identity=credentials.identity
    )
