import asyncio
import threading
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import paho.mqtt.client as mqtt
import pytest
from paho.mqtt.packettypes import PacketTypes
from paho.mqtt.reasoncodes import ReasonCode

from idt_worker.ingestion.mqtt_client import MQTTClient

SUCCESS = ReasonCode(PacketTypes.CONNACK, "Success")
NOT_AUTHORIZED = ReasonCode(PacketTypes.CONNACK, "Not authorized")


@pytest.fixture
def background_loop():
    """Event loop running in its own thread, like the service loop seen from paho."""
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    yield loop
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=5)
    loop.close()


def message(topic: str, payload: bytes):
    return SimpleNamespace(topic=topic, payload=payload)


class TestSubscriptions:
    def test_subscribes_registered_patterns_on_connect(self):
        client = MQTTClient("broker", 1883, qos=0)
        client.subscribe("machine/+/realtime", MagicMock())
        paho = MagicMock()

        client._on_connect(paho, None, {}, SUCCESS, None)

        assert client.is_connected() is True
        paho.subscribe.assert_called_once_with("machine/+/realtime", 0)

    def test_failed_connect_does_not_subscribe(self):
        client = MQTTClient("broker", 1883)
        client.subscribe("machine/+/realtime", MagicMock())
        paho = MagicMock()

        client._on_connect(paho, None, {}, NOT_AUTHORIZED, None)

        assert client.is_connected() is False
        paho.subscribe.assert_not_called()

    def test_credentials_applied_only_with_username(self):
        with patch.object(mqtt.Client, "username_pw_set") as username_pw_set:
            MQTTClient("broker", 1883)
            username_pw_set.assert_not_called()

            MQTTClient("broker", 1883, username="worker", password="s3cret")
            username_pw_set.assert_called_once_with("worker", "s3cret")


class TestMessageBridge:
    def test_handler_runs_to_completion_before_callback_returns(self, background_loop):
        received = []

        async def handler(topic, payload):
            await asyncio.sleep(0.01)
            received.append((topic, payload))

        client = MQTTClient("broker", 1883)
        client.loop = background_loop
        client.subscribe("machine/+/realtime", handler)

        client._on_message(None, None, message("machine/M1/realtime", b'{"volt": 1}'))

        assert received == [("machine/M1/realtime", b'{"volt": 1}')]
        assert client.message_count == 1

    def test_non_matching_topic_not_dispatched(self, background_loop):
        received = []

        async def handler(topic, payload):
            received.append(topic)

        client = MQTTClient("broker", 1883)
        client.loop = background_loop
        client.subscribe("machine/+/realtime", handler)

        client._on_message(None, None, message("sensors/abc", b"{}"))

        assert received == []
        assert client.message_count == 1

    def test_handler_exception_contained(self, background_loop):
        async def handler(topic, payload):
            raise RuntimeError("boom")

        client = MQTTClient("broker", 1883)
        client.loop = background_loop
        client.subscribe("machine/+/realtime", handler)

        client._on_message(None, None, message("machine/M1/realtime", b"{}"))

    def test_message_before_loop_attached_is_dropped(self):
        handler = MagicMock()
        client = MQTTClient("broker", 1883)
        client.subscribe("machine/+/realtime", handler)

        client._on_message(None, None, message("machine/M1/realtime", b"{}"))

        handler.assert_not_called()


class TestShutdown:
    def test_disconnect_lets_in_flight_handler_finish(self, background_loop):
        started = threading.Event()
        received = []

        async def handler(topic, payload):
            started.set()
            await asyncio.sleep(0.05)
            received.append(topic)

        client = MQTTClient("broker", 1883)
        client.loop = background_loop
        client.subscribe("machine/+/realtime", handler)

        network_thread = threading.Thread(
            target=client._on_message,
            args=(None, None, message("machine/M1/realtime", b"{}")),
        )
        network_alive_after_stop = []

        def loop_stop():
            network_thread.join(timeout=5)
            network_alive_after_stop.append(network_thread.is_alive())

        client.client = MagicMock()
        client.client.loop_stop.side_effect = loop_stop

        network_thread.start()
        assert started.wait(timeout=5)
        asyncio.run_coroutine_threadsafe(client.disconnect(), background_loop).result(timeout=10)

        assert network_alive_after_stop == [False]
        assert received == ["machine/M1/realtime"]
        client.client.disconnect.assert_called_once()

    def test_messages_after_disconnect_not_dispatched(self, background_loop):
        received = []

        async def handler(topic, payload):
            received.append(topic)

        client = MQTTClient("broker", 1883)
        client.loop = background_loop
        client.subscribe("machine/+/realtime", handler)
        client.client = MagicMock()

        asyncio.run_coroutine_threadsafe(client.disconnect(), background_loop).result(timeout=5)
        client._on_message(None, None, message("machine/M1/realtime", b"{}"))

        assert received == []


def test_topic_pattern_matches_realtime_topics():
    assert mqtt.topic_matches_sub("machine/+/realtime", "machine/M1/realtime")
    assert not mqtt.topic_matches_sub("machine/+/realtime", "machine/M1/x/realtime")
