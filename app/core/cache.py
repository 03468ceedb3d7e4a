import logging
import redis

from app.core.config import settings

logger = logging.getLogger(__name__)

_redis_client = None


def get_redis_client():
    global _redis_client
    if _redis_client is None:
        # Use simple redis client (synchronous) for lightweight operations
        _redis_client = redis.Redis.from_url(settings.redis_url)
    return _redis_client


class ProfileExistenceCache:
    """
    Remembers which profile ids are known to exist.

    Entries expire after ``ttl`` seconds, so the cache stays bounded and a
    deleted profile is re-checked against the database eventually. Redis
    failures degrade to a cache miss.
    """

    key_prefix = "profile-exists:"

    def __init__(self, client, ttl: int = 300):
        self.client = client
        self.ttl = ttl

    def _key(self, profile_id: str) -> str:
        return f"{self.key_prefix}{profile_id}"

    def exists(self, profile_id: str) -> bool:
        try:
            return bool(self.client.get(self._key(profile_id)))
        except redis.RedisError as e:
            logger.warning(f"Profile cache read failed: {e}")
            return False

    def remember(self, profile_id: str) -> None:
        try:
            self.client.set(self._key(profile_id), "1", ex=self.ttl)
        except redis.RedisError as e:
            logger.warning(f"Profile cache write failed: {e}")

    def forget(self, profile_id: str) -> None:
        try:
            self.client.delete(self._key(profile_id))
        except redis.RedisError as e:
            logger.warning(f"Profile cache delete failed: {e}")


def get_profile_cache() -> ProfileExistenceCache:
    """FastAPI dependency returning the profile-existence cache."""
    return ProfileExistenceCache(get_redis_client(), ttl=settings.profile_cache_ttl)
