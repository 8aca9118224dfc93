"""
Fault reclassification.

Each function maps a RequestError into the outcome that makes sense for one
calling context. The negotiation contexts return either a Verdict (keep
negotiating) or the AddAnyPortError to raise.
"""

from enum import Enum

from igd.errors import (
    AddAnyPortError,
    AddPortError,
    ErrorKind,
    GetExternalIpError,
    RemovePortError,
    RequestError,
    UpnpFault,
)

# UPnP error codes used by WANIPConnection
INVALID_ACTION = 401
DESCRIPTION_TOO_LONG = 605
ACTION_NOT_AUTHORIZED = 606
NO_SUCH_ENTRY_IN_ARRAY = 714
CONFLICT_IN_MAPPING_ENTRY = 718
SAME_PORT_VALUES_REQUIRED = 724
ONLY_PERMANENT_LEASES_SUPPORTED = 725
NO_PORT_MAPS_AVAILABLE = 728


class Verdict(str, Enum):
    """What the negotiation should do next after a recoverable fault."""
    FALL_BACK = "fall_back"   # AddAnyPortMapping unsupported
    RETRY = "retry"           # random port collided
    SAME_PORT = "same_port"   # device wants external == internal port


def _code(err: RequestError) -> int | None:
    return err.code if isinstance(err, UpnpFault) else None


def classify_any_port_error(err: RequestError) -> Verdict | AddAnyPortError:
    code = _code(err)
    if code == INVALID_ACTION:
        return Verdict.FALL_BACK
    if code == DESCRIPTION_TOO_LONG:
        return AddAnyPortError(ErrorKind.DESCRIPTION_TOO_LONG)
    if code == ACTION_NOT_AUTHORIZED:
        return AddAnyPortError(ErrorKind.ACTION_NOT_AUTHORIZED)
    if code == NO_PORT_MAPS_AVAILABLE:
        return AddAnyPortError(ErrorKind.NO_PORTS_AVAILABLE)
    return AddAnyPortError.from_request_error(err)


def classify_random_port_error(err: RequestError) -> Verdict | AddAnyPortError:
    code = _code(err)
    if code == CONFLICT_IN_MAPPING_ENTRY:
        return Verdict.RETRY
    if code == SAME_PORT_VALUES_REQUIRED:
        return Verdict.SAME_PORT
    if code == DESCRIPTION_TOO_LONG:
        return AddAnyPortError(ErrorKind.DESCRIPTION_TOO_LONG)
    if code == ACTION_NOT_AUTHORIZED:
        return AddAnyPortError(ErrorKind.ACTION_NOT_AUTHORIZED)
    if code == ONLY_PERMANENT_LEASES_SUPPORTED:
        return AddAnyPortError(ErrorKind.ONLY_PERMANENT_LEASES_SUPPORTED)
    return AddAnyPortError.from_request_error(err)


def convert_same_port_error(err: RequestError) -> AddAnyPortError:
    code = _code(err)
    if code == ACTION_NOT_AUTHORIZED:
        return AddAnyPortError(ErrorKind.ACTION_NOT_AUTHORIZED)
    if code == CONFLICT_IN_MAPPING_ENTRY:
        return AddAnyPortError(ErrorKind.EXTERNAL_PORT_IN_USE)
    if code == ONLY_PERMANENT_LEASES_SUPPORTED:
        return AddAnyPortError(ErrorKind.ONLY_PERMANENT_LEASES_SUPPORTED)
    return AddAnyPortError.from_request_error(err)


def convert_add_port_error(err: RequestError) -> AddPortError:
    kind = {
        DESCRIPTION_TOO_LONG: ErrorKind.DESCRIPTION_TOO_LONG,
        ACTION_NOT_AUTHORIZED: ErrorKind.ACTION_NOT_AUTHORIZED,
        CONFLICT_IN_MAPPING_ENTRY: ErrorKind.PORT_IN_USE,
        SAME_PORT_VALUES_REQUIRED: ErrorKind.SAME_PORT_VALUES_REQUIRED,
        ONLY_PERMANENT_LEASES_SUPPORTED: ErrorKind.ONLY_PERMANENT_LEASES_SUPPORTED,
    }.get(_code(err))
    if kind is None:
        return AddPortError.from_request_error(err)
    return AddPortError(kind)


def convert_remove_port_error(err: RequestError) -> RemovePortError:
    code = _code(err)
    if code == ACTION_NOT_AUTHORIZED:
        return RemovePortError(ErrorKind.ACTION_NOT_AUTHORIZED)
    if code == NO_SUCH_ENTRY_IN_ARRAY:
        return RemovePortError(ErrorKind.NO_SUCH_PORT_MAPPING)
    return RemovePortError.from_request_error(err)


def convert_get_external_ip_error(err: RequestError) -> GetExternalIpError:
    if _code(err) == ACTION_NOT_AUTHORIZED:
        return GetExternalIpError(ErrorKind.ACTION_NOT_AUTHORIZED)
    return GetExternalIpError.from_request_error(err)


def any_port_error_from_external_ip(err: GetExternalIpError) -> AddAnyPortError:
    """Carry a failed external IP lookup into the any-port error family."""
    return AddAnyPortError(err.kind, err.request_error)
