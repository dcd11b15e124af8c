"""Unit tests for connectivity oracles."""

from unittest.mock import MagicMock

from college_chatbot import connectivity
from college_chatbot.connectivity import SocketConnectivityOracle, StaticConnectivity


class TestStaticConnectivity:

    def test_reports_configured_state(self):
        oracle = StaticConnectivity(False)
        assert oracle() is False
        oracle.online = True
        assert oracle() is True


class TestSocketConnectivityOracle:

    def test_online_when_connection_opens(self, monkeypatch):
        create_connection = MagicMock()
        monkeypatch.setattr(connectivity.socket, "create_connection", create_connection)

        oracle = SocketConnectivityOracle("example.org", 443, timeout=0.5)

        assert oracle() is True
        create_connection.assert_called_once_with(("example.org", 443), timeout=0.5)

    def test_offline_on_os_error(self, monkeypatch):
        def refuse(address, timeout):
            raise OSError("Network is unreachable")

        monkeypatch.setattr(connectivity.socket, "create_connection", refuse)

        assert SocketConnectivityOracle()() is False
