"""REST API routes for Port Booth."""

import logging

from fastapi import APIRouter, HTTPException, Path
from pydantic import BaseModel, Field

from config import DEFAULT_DESCRIPTION, DEFAULT_LEASE_DURATION
from igd.errors import ErrorKind, OperationError
from igd.models import PortMappingProtocol, SocketAddress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Injected by main.py at startup
_gateway = None


def init_routes(gateway) -> None:
    """Inject the gateway handle into the routes module."""
    global _gateway
    _gateway = gateway


def _require_gateway():
    if _gateway is None:
        raise HTTPException(status_code=503, detail="No gateway configured")
    return _gateway


_STATUS_BY_KIND = {
    ErrorKind.INTERNAL_PORT_ZERO_INVALID: 400,
    ErrorKind.EXTERNAL_PORT_ZERO_INVALID: 400,
    ErrorKind.ACTION_NOT_AUTHORIZED: 403,
    ErrorKind.NO_SUCH_PORT_MAPPING: 404,
    ErrorKind.REQUEST_ERROR: 502,
}


def _http_error(err: OperationError) -> HTTPException:
    status = _STATUS_BY_KIND.get(err.kind, 409)
    logger.warning(f"Gateway operation failed: {err}")
    return HTTPException(status_code=status, detail={"kind": err.kind.value, "message": str(err)})


# --- Request bodies ---

class AnyPortBody(BaseModel):
    protocol: PortMappingProtocol
    local_addr: SocketAddress
    lease_duration: int = Field(default=DEFAULT_LEASE_DURATION, ge=0, le=0xFFFFFFFF)
    description: str = DEFAULT_DESCRIPTION


class PortBody(AnyPortBody):
    external_port: int = Field(ge=0, le=65535)


# --- Gateway ---

@router.get("/gateway")
async def get_gateway():
    """Return the control URL of the configured gateway."""
    gateway = _require_gateway()
    return {"control_url": str(gateway)}


@router.get("/external-ip")
async def get_external_ip():
    gateway = _require_gateway()
    try:
        ip = await gateway.get_external_ip()
    except OperationError as e:
        raise _http_error(e)
    return {"external_ip": str(ip)}


@router.post("/address")
async def get_any_address(body: AnyPortBody):
    """Map any external port and return the full external address."""
    gateway = _require_gateway()
    try:
        addr = await gateway.get_any_address(
            body.protocol, body.local_addr, body.lease_duration, body.description
        )
    except OperationError as e:
        raise _http_error(e)
    return {"external_addr": str(addr), "external_ip": str(addr.ip), "external_port": addr.port}


# --- Mappings ---

@router.post("/mappings/any")
async def add_any_port(body: AnyPortBody):
    gateway = _require_gateway()
    try:
        port = await gateway.add_any_port(
            body.protocol, body.local_addr, body.lease_duration, body.description
        )
    except OperationError as e:
        raise _http_error(e)
    return {"external_port": port}


@router.post("/mappings")
async def add_port(body: PortBody):
    gateway = _require_gateway()
    try:
        await gateway.add_port(
            body.protocol,
            body.external_port,
            body.local_addr,
            body.lease_duration,
            body.description,
        )
    except OperationError as e:
        raise _http_error(e)
    return {"status": "mapped", "external_port": body.external_port}


@router.delete("/mappings/{protocol}/{external_port}")
async def remove_port(protocol: PortMappingProtocol, external_port: int = Path(ge=0, le=65535)):
    gateway = _require_gateway()
    try:
        await gateway.remove_port(protocol, external_port)
    except OperationError as e:
        raise _http_error(e)
    return {"status": "removed"}
