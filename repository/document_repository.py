# repository/document_repository.py
import logging
from typing import Final, List, Optional
from pydantic import TypeAdapter, ValidationError
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from core.entities import Document
from repository.namespaces import DOCUMENTS

KEY_PREFIX: Final[str] = DOCUMENTS

logger = logging.getLogger(__name__)

_DOCUMENT = TypeAdapter(Document)


class DocumentRepository:
    """
    Flow:
    - One Redis hash per session; field = document id, value = parsed document JSON.
    - Insertion order is kept by sorting on uploadedAt when reading back.
    - TTL is refreshed on every write/read so documents live as long as the session.
    """

    def __init__(self, ttl_seconds: int = settings.PERSISTENCE_TTL_SECONDS) -> None:
        self._ttl = int(ttl_seconds)

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{KEY_PREFIX}:{session_id}"

    async def put(self, session_id: str, document: Document) -> None:
        r = await self._client()
        await r.hset(
            self._key(session_id),
            document.document_id,
            _DOCUMENT.dump_json(document),
        )
        await r.expire(self._key(session_id), self._ttl)

    async def get(self, session_id: str, document_id: str) -> Optional[Document]:
        r = await self._client()
        raw = await r.hget(self._key(session_id), document_id)
        if raw is None:
            return None
        await r.expire(self._key(session_id), self._ttl)
        return _DOCUMENT.validate_json(raw)

    async def all(self, session_id: str) -> List[Document]:
        r = await self._client()
        h = await r.hgetall(self._key(session_id))
        out: List[Document] = []
        for doc_id, raw in (h or {}).items():
            try:
                out.append(_DOCUMENT.validate_json(raw))
            except ValidationError:
                logger.warning("documents.decode.skip session=%s doc=%r", session_id, doc_id)
        if h:
            await r.expire(self._key(session_id), self._ttl)
        out.sort(key=lambda d: d.uploaded_at or "")
        return out

    async def count(self, session_id: str) -> int:
        r = await self._client()
        return int(await r.hlen(self._key(session_id)) or 0)

    async def delete(self, session_id: str, document_id: str) -> int:
        r = await self._client()
        return int(await r.hdel(self._key(session_id), document_id))
