# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Required, TypedDict

from .exceptions import ConfigurationError

SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
SIGV4_TERMINATOR: str = "aws4_request"

_AMZ_DATE_RE = re.compile(r"^\d{8}T\d{6}Z$")


class SigV4SigningProperties(TypedDict, total=False):
    region: Required[str]
    service: Required[str]
    date: str


def format_amz_date(when: datetime) -> str:
    """Format a datetime as a SigV4 timestamp.

    Naive datetimes are assumed to already be in UTC.
    """
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return when.astimezone(UTC).strftime(SIGV4_TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class SigningContext:
    """Date and scope values shared by every stage of one signing operation.

    ``date_stamp`` is always the first eight characters of ``amz_date``; it is
    never computed independently.
    """

    amz_date: str
    region: str
    service: str

    def __post_init__(self) -> None:
        if not _AMZ_DATE_RE.match(self.amz_date):
            raise ConfigurationError(
                f"Invalid SigV4 timestamp {self.amz_date!r}, expected the "
                "format YYYYMMDD'T'HHMMSS'Z'."
            )

    @classmethod
    def from_datetime(
        cls, when: datetime, *, region: str, service: str
    ) -> "SigningContext":
        return cls(amz_date=format_amz_date(when), region=region, service=service)

    @classmethod
    def from_properties(cls, properties: SigV4SigningProperties) -> "SigningContext":
        if "date" not in properties:
            return cls.from_datetime(
                datetime.now(UTC),
                region=properties["region"],
                service=properties["service"],
            )
        return cls(
            amz_date=properties["date"],
            region=properties["region"],
            service=properties["service"],
        )

    @property
    def date_stamp(self) -> str:
        return self.amz_date[0:8]

    @property
    def credential_scope(self) -> str:
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        return f"{self.date_stamp}/{self.region}/{self.service}/{SIGV4_TERMINATOR}"
