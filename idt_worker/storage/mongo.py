"""MongoDB client bootstrap for the telemetry sink.

The initial ping is retried so the worker can start before the database
container is ready.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


async def connect_mongo(url: str, attempts: int = 10) -> AsyncIOMotorClient:
    """Open a client and wait until the server answers a ping."""
    client = AsyncIOMotorClient(url, serverSelectionTimeoutMS=5000)
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type(PyMongoError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                await client.admin.command("ping")
    except PyMongoError:
        logger.error(f"Failed to connect to MongoDB after {attempts} attempts")
        client.close()
        raise
    logger.info("Connected to MongoDB")
    return client
