from types import TracebackType
from typing import Any

import aiohttp
import pytest
from aws_query_signers import AWSRequest, RemoteAuthError, URI
from aws_query_signers.aio import AIOHTTPDispatcher
from aws_query_signers.aio.dispatch import parse_error

SIGNATURE_MISMATCH_XML = b"""<ErrorResponse xmlns="http://ses.amazonaws.com/doc/2010-12-01/">
  <Error>
    <Type>Sender</Type>
    <Code>SignatureDoesNotMatch</Code>
    <Message>The request signature we calculated does not match.</Message>
  </Error>
  <RequestId>8f3a1d36-example</RequestId>
</ErrorResponse>"""


class FakeResponse:
    def __init__(self, status: int, body: bytes, reason: str = "OK") -> None:
        self.status = status
        self.headers = {"Content-Type": "text/xml"}
        self.reason = reason
        self._body = body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        return None


class FakeSession:
    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def request(self, **kwargs: Any) -> FakeResponse:
        self.calls.append(kwargs)
        return self.response

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def signed_request() -> AWSRequest:
    return AWSRequest(
        destination=URI(host="email.us-east-1.amazonaws.com", path="/"),
        method="POST",
        headers={
            "Content-Type": "application/x-www-form-urlencoded",
            "Authorization": "AWS4-HMAC-SHA256 Credential=AKID/...",
        },
        body=b"Action=SendEmail",
    )


async def test_send_passes_request_through(signed_request: AWSRequest) -> None:
    session = FakeSession(FakeResponse(200, b"<SendEmailResponse/>"))
    dispatcher = AIOHTTPDispatcher(_session=session)  # type: ignore[arg-type]

    response = await dispatcher.send(request=signed_request)

    assert response.status == 200
    assert response.body == b"<SendEmailResponse/>"
    assert session.calls == [
        {
            "method": "POST",
            "url": "https://email.us-east-1.amazonaws.com/",
            "headers": signed_request.headers,
            "data": b"Action=SendEmail",
        }
    ]


@pytest.mark.parametrize("status", [401, 403])
async def test_send_raises_remote_auth_error(
    signed_request: AWSRequest, status: int
) -> None:
    session = FakeSession(FakeResponse(status, SIGNATURE_MISMATCH_XML, "Forbidden"))
    dispatcher = AIOHTTPDispatcher(_session=session)  # type: ignore[arg-type]

    with pytest.raises(RemoteAuthError) as exc_info:
        await dispatcher.send(request=signed_request)

    error = exc_info.value
    assert error.status == status
    assert error.code == "SignatureDoesNotMatch"
    assert error.message == "The request signature we calculated does not match."
    assert error.body == SIGNATURE_MISMATCH_XML
    assert len(session.calls) == 1


async def test_send_does_not_raise_for_other_errors(
    signed_request: AWSRequest,
) -> None:
    session = FakeSession(FakeResponse(400, b"", "Bad Request"))
    dispatcher = AIOHTTPDispatcher(_session=session)  # type: ignore[arg-type]

    response = await dispatcher.send(request=signed_request)
    assert response.status == 400
    assert response.reason == "Bad Request"


async def test_close_leaves_injected_session_open() -> None:
    session = FakeSession(FakeResponse(200, b""))
    dispatcher = AIOHTTPDispatcher(_session=session)  # type: ignore[arg-type]
    await dispatcher.close()
    assert not session.closed


async def test_context_manager_closes_owned_session(
    monkeypatch: pytest.MonkeyPatch, signed_request: AWSRequest
) -> None:
    session = FakeSession(FakeResponse(200, b"<SendEmailResponse/>"))
    monkeypatch.setattr(aiohttp, "ClientSession", lambda: session)

    async with AIOHTTPDispatcher() as dispatcher:
        response = await dispatcher.send(request=signed_request)
        assert not session.closed

    assert response.status == 200
    assert session.closed


@pytest.mark.parametrize(
    "body,expected",
    [
        (SIGNATURE_MISMATCH_XML, ("SignatureDoesNotMatch", None)),
        (
            b'{"Error": {"Code": "InvalidClientTokenId", "Message": "bad token"}}',
            ("InvalidClientTokenId", "bad token"),
        ),
        (
            b'{"__type": "UnrecognizedClientException", "message": "bad"}',
            ("UnrecognizedClientException", "bad"),
        ),
        (b"", (None, None)),
        (b"not xml or json", (None, None)),
        (b"{not json", (None, None)),
    ],
)
def test_parse_error(body: bytes, expected: tuple[str | None, str | None]) -> None:
    code, message = parse_error(body)
    assert code == expected[0]
    if expected[1] is not None:
        assert message == expected[1]
