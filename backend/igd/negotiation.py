"""
Any-port negotiation.

Routers disagree on which mapping actions they implement, and a randomly
chosen external port may already be mapped by another host. The negotiation
walks through three strategies:

    START -> TRY_ANY_PORT -> DONE
                          -> TRY_RANDOM_PORT (bounded) -> DONE
                                                      -> TRY_SAME_PORT -> DONE | FAILED
                                                      -> FAILED
                          -> FAILED

TRY_ANY_PORT asks the device for any port via AddAnyPortMapping. Devices
without that action get AddPortMapping with random ports, retried on
conflict. Devices that insist on external == internal port get one final
AddPortMapping using the local port.
"""

import logging
import random
from enum import Enum
from typing import Awaitable, Callable

from config import MAX_RANDOM_PORT_ATTEMPTS, RANDOM_PORT_MAX, RANDOM_PORT_MIN
from igd.errors import AddAnyPortError, ErrorKind, RequestError
from igd.faults import (
    Verdict,
    classify_any_port_error,
    classify_random_port_error,
    convert_same_port_error,
)

logger = logging.getLogger(__name__)


def random_port() -> int:
    return random.randint(RANDOM_PORT_MIN, RANDOM_PORT_MAX)


class NegotiationState(str, Enum):
    START = "start"
    TRY_ANY_PORT = "try_any_port"
    TRY_RANDOM_PORT = "try_random_port"
    TRY_SAME_PORT = "try_same_port"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = (NegotiationState.DONE, NegotiationState.FAILED)


class AnyPortNegotiation:
    """
    One run of the any-port state machine.

    add_any_port_mapping(candidate) must return the port granted by the
    device; add_port_mapping(external_port) returns nothing. Both raise
    RequestError on failure. An instance is good for a single run().
    """

    def __init__(
        self,
        add_any_port_mapping: Callable[[int], Awaitable[int]],
        add_port_mapping: Callable[[int], Awaitable[None]],
        internal_port: int,
        port_source: Callable[[], int] | None = None,
        max_attempts: int = MAX_RANDOM_PORT_ATTEMPTS,
    ) -> None:
        self._add_any_port_mapping = add_any_port_mapping
        self._add_port_mapping = add_port_mapping
        self._internal_port = internal_port
        self._port_source = port_source or random_port
        self._max_attempts = max_attempts

        self.state = NegotiationState.START
        self.attempts = 0  # AddPortMapping calls made with random ports
        self.port: int | None = None
        self.error: AddAnyPortError | None = None
        self._cause: RequestError | None = None

        self._handlers = {
            NegotiationState.TRY_ANY_PORT: self._try_any_port,
            NegotiationState.TRY_RANDOM_PORT: self._try_random_port,
            NegotiationState.TRY_SAME_PORT: self._try_same_port,
        }

    async def run(self) -> int:
        """Drive the machine to a terminal state and return the granted port."""
        if self.state is not NegotiationState.START:
            raise RuntimeError("AnyPortNegotiation instances can only run once")

        self._transition(NegotiationState.TRY_ANY_PORT)
        while self.state not in TERMINAL_STATES:
            await self._handlers[self.state]()

        if self.state is NegotiationState.FAILED:
            raise self.error from self._cause
        return self.port

    def _transition(self, state: NegotiationState) -> None:
        logger.debug(f"Any-port negotiation: {self.state.value} -> {state.value}")
        self.state = state

    def _done(self, port: int) -> None:
        self.port = port
        self._transition(NegotiationState.DONE)

    def _fail(self, error: AddAnyPortError, cause: RequestError | None = None) -> None:
        self.error = error
        self._cause = cause
        self._transition(NegotiationState.FAILED)

    async def _try_any_port(self) -> None:
        candidate = self._port_source()
        try:
            granted = await self._add_any_port_mapping(candidate)
        except RequestError as err:
            outcome = classify_any_port_error(err)
            if outcome is Verdict.FALL_BACK:
                logger.warning("Gateway does not support AddAnyPortMapping, falling back to random ports")
                self._transition(NegotiationState.TRY_RANDOM_PORT)
            else:
                self._fail(outcome, err)
            return
        self._done(granted)

    async def _try_random_port(self) -> None:
        if self.attempts >= self._max_attempts:
            logger.warning(f"No free external port found after {self.attempts} attempts")
            self._fail(AddAnyPortError(ErrorKind.NO_PORTS_AVAILABLE))
            return

        self.attempts += 1
        candidate = self._port_source()
        try:
            await self._add_port_mapping(candidate)
        except RequestError as err:
            outcome = classify_random_port_error(err)
            if outcome is Verdict.RETRY:
                logger.debug(f"External port {candidate} already mapped (attempt {self.attempts})")
            elif outcome is Verdict.SAME_PORT:
                logger.warning(f"Gateway requires identical ports, retrying with {self._internal_port}")
                self._transition(NegotiationState.TRY_SAME_PORT)
            else:
                self._fail(outcome, err)
            return
        self._done(candidate)

    async def _try_same_port(self) -> None:
        try:
            await self._add_port_mapping(self._internal_port)
        except RequestError as err:
            self._fail(convert_same_port_error(err), err)
            return
        self._done(self._internal_port)
