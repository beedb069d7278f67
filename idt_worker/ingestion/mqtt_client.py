"""
Thin MQTT client — connect/disconnect/subscribe and hand messages to registered handlers.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Tuple

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str, bytes], Awaitable[None]]


class MQTTClient:
    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        qos: int = 0,
        client_id: str = "",
        username: str = "",
        password: str = "",
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.qos = qos

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        if username:
            self.client.username_pw_set(username, password or None)
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

        self.message_count: int = 0
        self.connected: bool = False
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._closing: bool = False

        self._subscriptions: List[Tuple[str, MessageHandler]] = []

    def subscribe(self, topic_pattern: str, handler: MessageHandler) -> None:
        """Register ``handler`` for ``topic_pattern``; subscribed on every (re)connect."""
        self._subscriptions.append((topic_pattern, handler))
        if self.connected:
            self.client.subscribe(topic_pattern, self.qos)

    async def connect(self) -> None:
        self.loop = asyncio.get_running_loop()
        self.client.connect(self.broker_host, self.broker_port, 60)
        self.client.loop_start()
        logger.info(f"Connecting to MQTT broker: {self.broker_host}:{self.broker_port}")

    async def disconnect(self) -> None:
        self._closing = True
        self.client.disconnect()
        # loop_stop joins the network thread, which may be waiting on a handler
        # scheduled on this event loop; join from a worker thread so it can finish
        await asyncio.to_thread(self.client.loop_stop)
        logger.info("Disconnected from MQTT broker")

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            logger.error(f"Connection failed: {reason_code}")
            return
        self.connected = True
        logger.info("Connected to MQTT broker")
        for topic_pattern, _ in self._subscriptions:
            client.subscribe(topic_pattern, self.qos)
            logger.info(f"Subscribed to: {topic_pattern} QoS={self.qos}")

    def _on_message(self, client, userdata, msg):
        self.message_count += 1
        logger.debug(f"Received topic={msg.topic} payload_len={len(msg.payload)}")

        if self._closing:
            logger.debug(f"Dropping message on {msg.topic}: client is shutting down")
            return

        if self.loop is None:
            logger.warning(f"Dropping message on {msg.topic}: event loop not attached")
            return

        for topic_pattern, handler in self._subscriptions:
            if not mqtt.topic_matches_sub(topic_pattern, msg.topic):
                continue
            future = asyncio.run_coroutine_threadsafe(
                handler(msg.topic, bytes(msg.payload)), self.loop
            )
            # Block the network thread until the handler (and its sink write) resolves
            try:
                future.result()
            except Exception as e:
                logger.error(f"Handler failed for topic {msg.topic}: {e}", exc_info=True)

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        self.connected = False
        if reason_code.is_failure:
            logger.warning(f"Unexpected disconnection: {reason_code}")

    def is_connected(self) -> bool:
        return self.connected
