import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from idt_worker.config import settings
from idt_worker.events import CountingEventSink, log_event
from idt_worker.ingestion.dispatcher import Dispatcher
from idt_worker.ingestion.mqtt_client import MQTTClient
from idt_worker.storage.mongo import connect_mongo
from idt_worker.storage.telemetry_writer import TelemetryWriter

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting machine realtime worker...")

    mongo_client = await connect_mongo(
        settings.MONGODB_URL, attempts=settings.MONGODB_CONNECT_ATTEMPTS
    )
    writer = TelemetryWriter(
        mongo_client[settings.MONGODB_DB], collection_name=settings.MONGODB_COLLECTION
    )
    await writer.ensure_collection()

    events = CountingEventSink(log_event)
    dispatcher = Dispatcher(sink=writer, on_event=events)

    mqtt_client = MQTTClient(
        broker_host=settings.MQTT_BROKER_HOST,
        broker_port=settings.MQTT_BROKER_PORT,
        qos=settings.MQTT_QOS,
        client_id=settings.MQTT_CLIENT_ID,
        username=settings.MQTT_USERNAME,
        password=settings.MQTT_PASSWORD,
    )
    mqtt_client.subscribe(settings.MQTT_TOPIC, dispatcher.handle)
    await mqtt_client.connect()

    app.state.mqtt_client = mqtt_client
    app.state.writer = writer
    app.state.events = events
    logger.info(f"Worker running; {settings.MQTT_TOPIC} -> {settings.MONGODB_DB}.{settings.MONGODB_COLLECTION}")

    yield

    await mqtt_client.disconnect()
    mongo_client.close()
    logger.info("Machine realtime worker stopped")


app = FastAPI(title="IDT Machine Realtime Worker", version="1.0.0", lifespan=lifespan)


@app.get("/")
async def root():
    return {
        "service": settings.SERVICE_NAME,
        "status": "running",
        "broker": settings.MQTT_BROKER_HOST,
        "topic": settings.MQTT_TOPIC,
    }


@app.get("/health")
async def health():
    mqtt_client = getattr(app.state, "mqtt_client", None)
    writer = getattr(app.state, "writer", None)
    events = getattr(app.state, "events", None)
    return {
        "status": "healthy",
        "mqtt_connected": mqtt_client.is_connected() if mqtt_client else False,
        "messages_received": mqtt_client.message_count if mqtt_client else 0,
        "sink_healthy": await writer.health() if writer else False,
        "events": events.counts if events else {},
    }
