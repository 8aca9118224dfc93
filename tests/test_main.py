"""Tests for app wiring: gateway construction from configuration and startup."""

import pytest
from fastapi.testclient import TestClient

import main
from api import routes
from igd.gateway import Gateway
from igd.models import SocketAddress


class TestSocketAddress:

    def test_parse(self):
        addr = SocketAddress.parse("192.168.1.1:1900")
        assert addr == SocketAddress(ip="192.168.1.1", port=1900)
        assert str(addr) == "192.168.1.1:1900"

    @pytest.mark.parametrize("value", ["192.168.1.1", ":80", "host:80", "192.168.1.1:99999"])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError):
            SocketAddress.parse(value)


class TestBuildGateway:

    def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(main, "GATEWAY_ADDRESS", "")
        assert main.build_gateway() is None

    def test_configured(self, monkeypatch):
        monkeypatch.setattr(main, "GATEWAY_ADDRESS", "192.168.1.1:5000")
        monkeypatch.setattr(main, "GATEWAY_CONTROL_URL", "/upnp/control/WANIPConn1")
        gw = main.build_gateway()
        assert gw == Gateway(
            addr=SocketAddress(ip="192.168.1.1", port=5000),
            control_url="/upnp/control/WANIPConn1",
        )

    def test_startup_injects_gateway(self, monkeypatch):
        monkeypatch.setattr(main, "GATEWAY_ADDRESS", "192.168.1.1:5000")
        with TestClient(main.app) as client:
            resp = client.get("/api/gateway")
        routes.init_routes(None)
        assert resp.json() == {"control_url": "http://192.168.1.1:5000/ctl/IPConn"}
