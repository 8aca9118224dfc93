"""
Exception taxonomy for gateway operations.

Request-level errors describe why a single SOAP request failed. Operation
errors (GetExternalIpError, AddAnyPortError, AddPortError, RemovePortError)
carry an ErrorKind and, for ErrorKind.REQUEST_ERROR, the request error that
caused them.
"""

from enum import Enum


class GatewayError(Exception):
    """Base class for everything raised by the IGD client."""


# --- Request errors ---

class RequestError(GatewayError):
    """A single request to the gateway failed."""


class TransportError(RequestError):
    """Connection, timeout or HTTP-level failure talking to the gateway."""


class InvalidResponse(RequestError):
    """The gateway answered with something that is not a usable SOAP response."""

    def __init__(self, text: str, reason: str = "Invalid response from gateway") -> None:
        super().__init__(reason)
        self.text = text


class UpnpFault(RequestError):
    """The gateway returned a SOAP fault with a UPnP error code."""

    def __init__(self, code: int, description: str = "") -> None:
        super().__init__(f"UPnP error {code}: {description}" if description else f"UPnP error {code}")
        self.code = code
        self.description = description


# --- Operation errors ---

class ErrorKind(str, Enum):
    REQUEST_ERROR = "request_error"
    ACTION_NOT_AUTHORIZED = "action_not_authorized"
    INTERNAL_PORT_ZERO_INVALID = "internal_port_zero_invalid"
    EXTERNAL_PORT_ZERO_INVALID = "external_port_zero_invalid"
    NO_PORTS_AVAILABLE = "no_ports_available"
    EXTERNAL_PORT_IN_USE = "external_port_in_use"
    PORT_IN_USE = "port_in_use"
    SAME_PORT_VALUES_REQUIRED = "same_port_values_required"
    ONLY_PERMANENT_LEASES_SUPPORTED = "only_permanent_leases_supported"
    DESCRIPTION_TOO_LONG = "description_too_long"
    NO_SUCH_PORT_MAPPING = "no_such_port_mapping"


_MESSAGES = {
    ErrorKind.ACTION_NOT_AUTHORIZED: "The client is not authorized to perform the operation",
    ErrorKind.INTERNAL_PORT_ZERO_INVALID: "Can not add a mapping for local port 0",
    ErrorKind.EXTERNAL_PORT_ZERO_INVALID: "External port 0 is not a valid port number",
    ErrorKind.NO_PORTS_AVAILABLE: "The gateway has no free external ports",
    ErrorKind.EXTERNAL_PORT_IN_USE: "The external port is already mapped on the gateway",
    ErrorKind.PORT_IN_USE: "The port is already mapped on the gateway",
    ErrorKind.SAME_PORT_VALUES_REQUIRED: "The gateway requires the external and internal ports to match",
    ErrorKind.ONLY_PERMANENT_LEASES_SUPPORTED: "The gateway only supports permanent leases (lease duration 0)",
    ErrorKind.DESCRIPTION_TOO_LONG: "The mapping description is too long for the gateway",
    ErrorKind.NO_SUCH_PORT_MAPPING: "The gateway reports no such port mapping",
}


class OperationError(GatewayError):
    """A public gateway operation failed."""

    def __init__(self, kind: ErrorKind, request_error: RequestError | None = None) -> None:
        if kind is ErrorKind.REQUEST_ERROR:
            message = f"Request failed: {request_error}"
        else:
            message = _MESSAGES[kind]
        super().__init__(message)
        self.kind = kind
        self.request_error = request_error

    @classmethod
    def from_request_error(cls, err: RequestError):
        return cls(ErrorKind.REQUEST_ERROR, err)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.value})"


class GetExternalIpError(OperationError):
    """get_external_ip failed."""


class AddAnyPortError(OperationError):
    """add_any_port or get_any_address failed."""


class AddPortError(OperationError):
    """add_port failed."""


class RemovePortError(OperationError):
    """remove_port failed."""
