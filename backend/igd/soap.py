"""HTTP transport for SOAP control actions."""

import asyncio
import logging

import aiohttp

from config import REQUEST_TIMEOUT
from igd.errors import TransportError

logger = logging.getLogger(__name__)


async def send_async(url: str, action: str, body: str, timeout: float = REQUEST_TIMEOUT) -> str:
    """
    POST a SOAP action and return the response text.

    The HTTP status is not checked: gateways report UPnP faults as HTTP 500
    with a SOAP body, and the parser decides what the body means.
    """
    headers = {
        "SOAPAction": action,
        "Content-Type": 'text/xml; charset="utf-8"',
    }
    logger.debug(f"POST {url} SOAPAction={action}")
    try:
        async with aiohttp.ClientSession() as session, session.post(
            url,
            data=body.encode("utf-8"),
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as resp:
            text = await resp.text()
            logger.debug(f"{url} answered HTTP {resp.status} ({len(text)} bytes)")
            return text
    except asyncio.TimeoutError as e:
        raise TransportError(f"Timed out after {timeout}s talking to {url}") from e
    except aiohttp.ClientError as e:
        raise TransportError(f"HTTP error talking to {url}: {e}") from e
    except UnicodeDecodeError as e:
        raise TransportError(f"Undecodable response body from {url}: {e}") from e
