# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass, field
from datetime import UTC, datetime

from ._context import SigV4SigningProperties
from .interfaces.identity import AWSCredentialsIdentity


@dataclass(kw_only=True, frozen=True)
class AWSCredentialIdentity(AWSCredentialsIdentity):
    access_key_id: str
    secret_access_key: str = field(repr=False)
    expiration: datetime | None = None

    def __post_init__(self) -> None:
        if self.expiration is not None and self.expiration.tzinfo is None:
            object.__setattr__(self, "expiration", self.expiration.replace(tzinfo=UTC))


@dataclass(kw_only=True, frozen=True)
class Credentials:
    """An identity together with the region and service it signs for.

    Owned by the caller and never persisted by the signer.
    """

    identity: AWSCredentialIdentity
    region: str
    service: str

    @property
    def access_key_id(self) -> str:
        return self.identity.access_key_id

    def signing_properties(self, *, date: str | None = None) -> SigV4SigningProperties:
        """Build the signing properties for a single request.

        :param date: An explicit ``YYYYMMDD'T'HHMMSS'Z'`` timestamp. When omitted the
            signer stamps the request with the current UTC time.
        """
        properties = SigV4SigningProperties(region=self.region, service=self.service)
        if date is not None:
            properties["date"] = date
        return properties
