from datetime import UTC, datetime, timedelta

import pytest
from aws_query_signers import AWSCredentialIdentity, Credentials


@pytest.mark.parametrize(
    "access_key_id,secret_access_key,expiration",
    [
        ("AKID1234EXAMPLE", "SECRET1234", None),
        ("AKID1234EXAMPLE", "SECRET1234", datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC)),
    ],
)
def test_aws_credential_identity(
    access_key_id: str,
    secret_access_key: str,
    expiration: datetime | None,
) -> None:
    creds = AWSCredentialIdentity(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        expiration=expiration,
    )
    assert creds.access_key_id == access_key_id
    assert creds.secret_access_key == secret_access_key
    assert creds.expiration == expiration


@pytest.mark.parametrize(
    "expiration,is_expired",
    [
        (None, False),
        (datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC), True),
        (datetime.now(UTC) + timedelta(hours=1), False),
    ],
)
def test_aws_credential_identity_expired(
    expiration: datetime | None, is_expired: bool
) -> None:
    creds = AWSCredentialIdentity(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        expiration=expiration,
    )
    assert creds.is_expired is is_expired


def test_naive_expiration_is_treated_as_utc() -> None:
    creds = AWSCredentialIdentity(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        expiration=datetime(2024, 5, 1),
    )
    assert creds.expiration == datetime(2024, 5, 1, tzinfo=UTC)
    assert creds.is_expired


def test_repr_hides_secret() -> None:
    creds = AWSCredentialIdentity(
        access_key_id="AKID1234EXAMPLE", secret_access_key="SECRET1234"
    )
    assert "SECRET1234" not in repr(creds)
    assert "AKID1234EXAMPLE" in repr(creds)


def test_credentials_signing_properties() -> None:
    credentials = Credentials(
        identity=AWSCredentialIdentity(
            access_key_id="AKID1234EXAMPLE", secret_access_key="SECRET1234"
        ),
        region="us-east-1",
        service="ses",
    )
    assert credentials.access_key_id == "AKID1234EXAMPLE"
    assert credentials.signing_properties() == {
        "region": "us-east-1",
        "service": "ses",
    }
    assert credentials.signing_properties(date="20240101T000000Z") == {
        "region": "us-east-1",
        "service": "ses",
        "date": "20240101T000000Z",
    }
