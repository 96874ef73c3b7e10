# repository/blob_repository.py
import logging
from typing import Final, Optional
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from repository.namespaces import BLOBS

KEY_PREFIX: Final[str] = BLOBS

logger = logging.getLogger(__name__)


class BlobRepository:
    """
    Uploaded PDF bytes, one Redis hash per session (field = document id).

    The session's blobs share one TTL, refreshed whenever a PDF is stored or
    served, so a session's files expire together with its parsed documents.
    """

    def __init__(self, ttl_seconds: int = settings.PERSISTENCE_TTL_SECONDS) -> None:
        self._ttl = int(ttl_seconds)

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{KEY_PREFIX}:{session_id}"

    async def put_pdf(self, session_id: str, document_id: str, data: bytes) -> None:
        r = await self._client()
        key = self._key(session_id)
        await r.hset(key, document_id, data)
        await r.expire(key, self._ttl)
        logger.debug("blobs.put session=%s doc=%s bytes=%d", session_id, document_id, len(data))

    async def get_pdf(self, session_id: str, document_id: str) -> Optional[bytes]:
        r = await self._client()
        return await r.hget(self._key(session_id), document_id)

    async def touch(self, session_id: str) -> bool:
        r = await self._client()
        return bool(await r.expire(self._key(session_id), self._ttl))

    async def delete(self, session_id: str, document_id: str) -> int:
        r = await self._client()
        return int(await r.hdel(self._key(session_id), document_id))
