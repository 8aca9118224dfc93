"""Pydantic models shared by the IGD client."""

from enum import Enum
from ipaddress import IPv4Address

from pydantic import BaseModel, ConfigDict, Field


class PortMappingProtocol(str, Enum):
    """Transport protocol of a port mapping, sent verbatim to the device."""
    TCP = "TCP"
    UDP = "UDP"


class SocketAddress(BaseModel):
    """An IPv4 address and port, e.g. a LAN endpoint or the gateway itself."""
    model_config = ConfigDict(frozen=True)

    ip: IPv4Address
    port: int = Field(ge=0, le=65535)

    @classmethod
    def parse(cls, value: str) -> "SocketAddress":
        """Build from an ``ip:port`` string."""
        host, sep, port = value.rpartition(":")
        if not sep or not host:
            raise ValueError(f"Expected ip:port, got {value!r}")
        return cls(ip=host, port=int(port))

    def __str__(self) -> str:
        return f"{self.ip}:{self.port}"


class RequestResponse:
    """A successful SOAP response: raw text plus the parsed response element."""

    def __init__(self, text: str, xml) -> None:
        self.text = text
        self.xml = xml

    def child_text(self, name: str) -> str | None:
        """Text of a direct child of the response element, ignoring namespaces."""
        for child in self.xml:
            if local_name(child.tag) == name:
                return (child.text or "").strip()
        return None


def local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]
