"""Tests for the outbound OSC sender (osc_bridge.udp_sender)."""

import socket
from unittest.mock import MagicMock

import pytest

from osc_bridge.osc import OSCMessage, decode_message
from osc_bridge.udp_sender import UDPSender


@pytest.fixture
def receiver():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    yield sock
    sock.close()


@pytest.fixture
def sender(receiver):
    sender = UDPSender(host="127.0.0.1", port=receiver.getsockname()[1])
    sender.start()
    yield sender
    sender.stop()


class TestUDPSender:
    """Test sending encoded OSC datagrams."""

    def test_send_to_default_target(self, sender, receiver):
        """A sent message arrives as one decodable datagram."""
        assert sender.send("/analysis/energy", [0.5, 3, "kick", True]) is True

        data, _ = receiver.recvfrom(65536)
        assert decode_message(data) == OSCMessage("/analysis/energy", (0.5, 3, "kick", True))
        assert sender.get_stats()["sent_count"] == 1

    def test_send_with_target_override(self, receiver):
        """Host and port can be overridden per call."""
        sender = UDPSender(host="127.0.0.1", port=9)
        sender.start()
        try:
            assert sender.send("/a", [1], host="127.0.0.1", port=receiver.getsockname()[1])
        finally:
            sender.stop()

        data, _ = receiver.recvfrom(65536)
        assert decode_message(data) == OSCMessage("/a", (1,))

    def test_encode_error_reported_not_raised(self, sender, receiver):
        """An unsupported argument fails this send only."""
        assert sender.send("/bad", [{"nested": True}]) is False
        assert sender.get_stats()["error_count"] == 1

        assert sender.send("/good", [1]) is True
        data, _ = receiver.recvfrom(65536)
        assert decode_message(data).address == "/good"

    def test_float_overflow_reported_not_raised(self, sender, receiver):
        """A number too large for float32 fails this send only."""
        assert sender.send("/analysis/x", [1e39]) is False
        assert sender.get_stats()["error_count"] == 1
        assert sender.get_stats()["sent_count"] == 0

        assert sender.send("/analysis/x", [1.5]) is True
        data, _ = receiver.recvfrom(65536)
        assert decode_message(data) == OSCMessage("/analysis/x", (1.5,))

    def test_transport_error_reported_not_raised(self, sender):
        """A socket error is counted and swallowed."""
        real_socket = sender.socket
        sender.socket = MagicMock()
        sender.socket.sendto.side_effect = OSError("Network is unreachable")
        try:
            assert sender.send("/a", [1]) is False
        finally:
            sender.socket = real_socket
        assert sender.get_stats()["error_count"] == 1

    def test_invalid_port_override_reported_not_raised(self, sender):
        assert sender.send("/a", [1], port=70000) is False
        assert sender.get_stats()["error_count"] == 1

    def test_send_before_start(self):
        sender = UDPSender()
        assert sender.send("/a", [1]) is False

    def test_stop_disables_sending(self, receiver):
        sender = UDPSender(host="127.0.0.1", port=receiver.getsockname()[1])
        sender.start()
        sender.stop()
        assert sender.socket is None
        assert sender.send("/a") is False
