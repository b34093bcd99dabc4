from stackline.infra.cache.memory import MemoryRequestCache
from stackline.infra.cache.redis import RedisRequestCache

__all__ = ["MemoryRequestCache", "RedisRequestCache"]
