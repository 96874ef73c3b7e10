# repository/session_repository.py
from typing import Final
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from model.session import ConversationContext
from repository.namespaces import CONTEXTS

KEY_PREFIX: Final[str] = CONTEXTS


class SessionRepository:
    """
    Conversation context per session. A missing or expired key reads back as a
    fresh context; TTL refreshed on set/get.
    """

    def __init__(self, ttl_seconds: int = settings.PERSISTENCE_TTL_SECONDS) -> None:
        self._ttl = int(ttl_seconds)

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{KEY_PREFIX}:{session_id}"

    async def get_context(self, session_id: str) -> ConversationContext:
        r = await self._client()
        raw = await r.get(self._key(session_id))
        if raw is None:
            return ConversationContext()
        try:
            return ConversationContext.model_validate_json(raw)
        finally:
            # Refresh TTL on read
            await r.expire(self._key(session_id), self._ttl)

    async def save_context(self, session_id: str, context: ConversationContext) -> None:
        r = await self._client()
        payload = context.model_dump_json().encode("utf-8")
        await r.set(self._key(session_id), payload, ex=self._ttl)

    async def touch(self, session_id: str) -> bool:
        r = await self._client()
        return bool(await r.expire(self._key(session_id), self._ttl))
