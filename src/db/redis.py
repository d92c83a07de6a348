from redis.asyncio import Redis
from src.config import Config
from src.utils.logger import app_logger

# Token blocklist written by the auth service on logout / refresh rotation
redis_client = Redis.from_url(
    Config.REDIS_URL,
    decode_responses=True
)

async def check_redis_connection():
    try:
        await redis_client.ping()
        app_logger.info("Redis connection established")
    except Exception as e:
        app_logger.warning(f"Redis connection failed: {e}")
