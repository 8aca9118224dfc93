"""Shared fixtures: canned SOAP responses and a fake gateway device."""

import re
from unittest.mock import patch

import pytest

ENVELOPE = """<?xml version="1.0"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">
<s:Body>
{body}
</s:Body>
</s:Envelope>"""

SERVICE = "urn:schemas-upnp-org:service:WANIPConnection:1"


class Soap:
    """Builders for gateway responses."""

    @staticmethod
    def ok(action: str, **children) -> str:
        inner = "".join(f"<{k}>{v}</{k}>" for k, v in children.items())
        return ENVELOPE.format(body=f'<u:{action}Response xmlns:u="{SERVICE}">{inner}</u:{action}Response>')

    @staticmethod
    def fault(code: int, description: str = "Error") -> str:
        return ENVELOPE.format(body=(
            "<s:Fault><faultcode>s:Client</faultcode><faultstring>UPnPError</faultstring>"
            '<detail><UPnPError xmlns="urn:schemas-upnp-org:control-1-0">'
            f"<errorCode>{code}</errorCode><errorDescription>{description}</errorDescription>"
            "</UPnPError></detail></s:Fault>"
        ))


class FakeDevice:
    """
    Stands in for soap.send_async. Responses are queued per action; the last
    queued response repeats. Exceptions in the queue are raised.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str]] = []  # (url, action, body)
        self._queues: dict[str, list] = {}

    def on(self, action: str, *responses) -> None:
        self._queues[action] = list(responses)

    async def send(self, url: str, header: str, body: str) -> str:
        action = header.strip('"').rsplit("#", 1)[1]
        self.calls.append((url, action, body))
        queue = self._queues[action]
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response

    def actions(self) -> list[str]:
        return [action for _, action, _ in self.calls]

    def external_ports(self, action: str) -> list[int]:
        return [
            int(re.search(r"<NewExternalPort>(\d+)</NewExternalPort>", body).group(1))
            for _, a, body in self.calls
            if a == action
        ]


@pytest.fixture
def soap():
    return Soap


@pytest.fixture
def device():
    fake = FakeDevice()
    with patch("igd.soap.send_async", new=fake.send):
        yield fake
