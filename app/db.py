"""MongoDB connection and Beanie document registration."""
import logging

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from app.config import settings
from app.models import DOCUMENT_MODELS

logger = logging.getLogger(__name__)

_client = None


async def init_db():
    """Connect to MongoDB, then register documents and build their indexes."""
    global _client
    _client = AsyncIOMotorClient(settings.mongodb_url, serverSelectionTimeoutMS=5000)
    # Fail fast with ServerSelectionTimeoutError when the server is down
    await _client.admin.command("ping")
    await init_beanie(
        database=_client[settings.mongodb_db_name],
        document_models=DOCUMENT_MODELS,
    )
    logger.info(f"Connected to MongoDB database '{settings.mongodb_db_name}'")


async def db_shutdown():
    global _client
    if _client:
        _client.close()
        _client = None
