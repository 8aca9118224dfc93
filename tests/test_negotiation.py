"""
Tests for the any-port negotiation state machine.

The engine is driven with AsyncMock stand-ins for the two mapping actions
and a deterministic port source, so every transition is checked without
any networking.
"""

import itertools
from unittest.mock import AsyncMock, call

import pytest

from igd.errors import AddAnyPortError, ErrorKind, InvalidResponse, TransportError, UpnpFault
from igd.negotiation import AnyPortNegotiation, NegotiationState, random_port

INTERNAL_PORT = 8080


def _negotiation(add_any, add, max_attempts=20):
    ports = itertools.count(40000)
    return AnyPortNegotiation(
        add_any, add, INTERNAL_PORT, port_source=lambda: next(ports), max_attempts=max_attempts
    )


# -----------------------------------------------------------------
# TRY_ANY_PORT
# -----------------------------------------------------------------


class TestAnyPortLayer:

    @pytest.mark.asyncio
    async def test_returns_granted_port(self):
        add_any = AsyncMock(return_value=51234)
        add = AsyncMock()
        negotiation = _negotiation(add_any, add)

        assert await negotiation.run() == 51234
        add_any.assert_awaited_once_with(40000)
        add.assert_not_awaited()
        assert negotiation.state is NegotiationState.DONE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error,kind", [
        (UpnpFault(605), ErrorKind.DESCRIPTION_TOO_LONG),
        (UpnpFault(606), ErrorKind.ACTION_NOT_AUTHORIZED),
        (UpnpFault(728), ErrorKind.NO_PORTS_AVAILABLE),
        (UpnpFault(718), ErrorKind.REQUEST_ERROR),
        (TransportError("refused"), ErrorKind.REQUEST_ERROR),
        (InvalidResponse("<x/>"), ErrorKind.REQUEST_ERROR),
    ])
    async def test_other_failures_stop_immediately(self, error, kind):
        add_any = AsyncMock(side_effect=error)
        add = AsyncMock()
        negotiation = _negotiation(add_any, add)

        with pytest.raises(AddAnyPortError) as exc:
            await negotiation.run()
        assert exc.value.kind is kind
        assert exc.value.__cause__ is error
        add.assert_not_awaited()
        assert negotiation.state is NegotiationState.FAILED

    @pytest.mark.asyncio
    async def test_unsupported_falls_back(self):
        add_any = AsyncMock(side_effect=UpnpFault(401, "Invalid Action"))
        add = AsyncMock(return_value=None)

        assert await _negotiation(add_any, add).run() == 40001
        add.assert_awaited_once_with(40001)


# -----------------------------------------------------------------
# TRY_RANDOM_PORT
# -----------------------------------------------------------------


class TestRandomPortLayer:

    def _unsupported(self):
        return AsyncMock(side_effect=UpnpFault(401))

    @pytest.mark.asyncio
    async def test_retries_on_conflict(self):
        add = AsyncMock(side_effect=[UpnpFault(718), UpnpFault(718), None])
        negotiation = _negotiation(self._unsupported(), add)

        assert await negotiation.run() == 40003
        assert add.await_args_list == [call(40001), call(40002), call(40003)]
        assert negotiation.attempts == 3

    @pytest.mark.asyncio
    async def test_exhaustion_after_twenty_attempts(self):
        add = AsyncMock(side_effect=UpnpFault(718))
        negotiation = _negotiation(self._unsupported(), add)

        with pytest.raises(AddAnyPortError) as exc:
            await negotiation.run()
        assert exc.value.kind is ErrorKind.NO_PORTS_AVAILABLE
        assert add.await_count == 20
        assert negotiation.port is None

    @pytest.mark.asyncio
    async def test_attempt_bound_is_configurable(self):
        add = AsyncMock(side_effect=UpnpFault(718))
        with pytest.raises(AddAnyPortError):
            await _negotiation(self._unsupported(), add, max_attempts=3).run()
        assert add.await_count == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failures_before", [0, 5, 19])
    async def test_same_port_signal_at_any_iteration(self, failures_before):
        side_effects = [UpnpFault(718)] * failures_before + [UpnpFault(724), None]
        add = AsyncMock(side_effect=side_effects)
        negotiation = _negotiation(self._unsupported(), add)

        assert await negotiation.run() == INTERNAL_PORT
        assert add.await_count == failures_before + 2
        assert add.await_args_list[-1] == call(INTERNAL_PORT)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error,kind", [
        (UpnpFault(605), ErrorKind.DESCRIPTION_TOO_LONG),
        (UpnpFault(606), ErrorKind.ACTION_NOT_AUTHORIZED),
        (UpnpFault(725), ErrorKind.ONLY_PERMANENT_LEASES_SUPPORTED),
        (UpnpFault(501), ErrorKind.REQUEST_ERROR),
        (TransportError("timed out"), ErrorKind.REQUEST_ERROR),
    ])
    async def test_fatal_failures_abort_loop(self, error, kind):
        add = AsyncMock(side_effect=[UpnpFault(718), error, None])

        with pytest.raises(AddAnyPortError) as exc:
            await _negotiation(self._unsupported(), add).run()
        assert exc.value.kind is kind
        assert add.await_count == 2


# -----------------------------------------------------------------
# TRY_SAME_PORT
# -----------------------------------------------------------------


class TestSamePortLayer:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error,kind", [
        (UpnpFault(606), ErrorKind.ACTION_NOT_AUTHORIZED),
        (UpnpFault(718), ErrorKind.EXTERNAL_PORT_IN_USE),
        (UpnpFault(725), ErrorKind.ONLY_PERMANENT_LEASES_SUPPORTED),
        (UpnpFault(724), ErrorKind.REQUEST_ERROR),
        (UpnpFault(605), ErrorKind.REQUEST_ERROR),
    ])
    async def test_same_port_failures(self, error, kind):
        add = AsyncMock(side_effect=[UpnpFault(724), error])

        with pytest.raises(AddAnyPortError) as exc:
            await _negotiation(AsyncMock(side_effect=UpnpFault(401)), add).run()
        assert exc.value.kind is kind
        assert add.await_count == 2


# -----------------------------------------------------------------
# Misc
# -----------------------------------------------------------------


class TestNegotiationMisc:

    @pytest.mark.asyncio
    async def test_single_use(self):
        negotiation = _negotiation(AsyncMock(return_value=40000), AsyncMock())
        await negotiation.run()
        with pytest.raises(RuntimeError):
            await negotiation.run()

    def test_random_port_range(self):
        for _ in range(200):
            assert 32768 <= random_port() <= 65535
