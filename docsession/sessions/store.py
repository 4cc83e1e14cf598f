"""
Session Document Store

This module provides the document store the session layer persists to.

A store is a key-addressed collection of JSON-like documents supporting:
- find_one(id): point lookup
- update(id, update_spec, upsert=True): partial update, inserting if absent
- remove(id): delete by id

Implementations:
- RedisDocumentStore: documents stored as JSON strings with a TTL; updates
  are applied in a WATCH/MULTI/EXEC optimistic transaction so a single
  update call applies all journaled operators or none.
- InMemoryDocumentStore: dict-backed store for development and tests.

Pattern: Repository pattern with Redis storage
Pattern: Dependency injection for Redis client
"""

import copy
import json
from typing import Any, Optional, Protocol, runtime_checkable

from redis.asyncio import Redis
from redis.exceptions import WatchError

from docsession.core.config import get_settings
from docsession.core.exceptions import SessionStoreError, SessionTypeMismatchError
from docsession.observability.logging import get_logger
from docsession.sessions.update import apply_update


logger = get_logger(__name__)


# =============================================================================
# DocumentStore Protocol
# =============================================================================


@runtime_checkable
class DocumentStore(Protocol):
    """
    Interface of the document collection backing session documents.

    Stored documents carry their id under "_id".
    """

    async def find_one(self, document_id: str) -> Optional[dict[str, Any]]:
        """Return the stored document, or None if absent."""
        ...

    async def update(
        self,
        document_id: str,
        update_spec: dict[str, dict[str, Any]],
        upsert: bool = True,
    ) -> None:
        """Apply a partial update, creating the document when upsert is set."""
        ...

    async def remove(self, document_id: str) -> None:
        """Delete the document; removing an absent document is not an error."""
        ...


def _apply_atomically(
    document_id: str,
    current: Optional[dict[str, Any]],
    update_spec: dict[str, dict[str, Any]],
) -> dict[str, Any]:
    """Apply an update to a copy of `current` (or a fresh upserted document)."""
    document = copy.deepcopy(current) if current is not None else {"_id": document_id}
    try:
        return apply_update(document, update_spec)
    except (SessionTypeMismatchError, ValueError) as e:
        raise SessionStoreError(
            f"Failed to apply update to session {document_id}: {e}",
            session_id=document_id,
        ) from e


# =============================================================================
# RedisDocumentStore
# =============================================================================


class RedisDocumentStore:
    """
    Redis-based session document storage.

    Each document is stored as a JSON string under `<key_prefix><id>` and
    expires `ttl_seconds` after its last update.

    Attributes:
        _redis: The Redis client instance.
        _key_prefix: Prefix for Redis keys.
        _ttl_seconds: Lifetime of a document after each write.
        _max_attempts: Optimistic transaction attempts per update.

    Example:
        >>> import redis.asyncio as redis
        >>> client = redis.from_url("redis://localhost:6379")
        >>> store = RedisDocumentStore(redis_client=client)
        >>> await store.update("abc", {"$inc": {"views": 1}})
        >>> await store.find_one("abc")
        {'_id': 'abc', 'views': 1}
    """

    def __init__(
        self,
        redis_client: Redis,
        key_prefix: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        max_attempts: int = 5,
    ) -> None:
        """
        Initialize RedisDocumentStore with Redis client.

        Args:
            redis_client: Async Redis client instance.
            key_prefix: Prefix for all session keys. Defaults to settings.
            ttl_seconds: Document lifetime. Defaults to settings.session_ttl_seconds.
            max_attempts: Attempts before a contended update gives up.
        """
        settings = get_settings()
        self._redis: Redis = redis_client
        self._key_prefix: str = (
            key_prefix if key_prefix is not None else settings.redis_key_prefix
        )
        self._ttl_seconds: int = (
            ttl_seconds if ttl_seconds is not None else settings.session_ttl_seconds
        )
        self._max_attempts = max_attempts

    def _make_key(self, document_id: str) -> str:
        return f"{self._key_prefix}{document_id}"

    async def find_one(self, document_id: str) -> Optional[dict[str, Any]]:
        """
        Retrieve a session document.

        Args:
            document_id: The document's unique identifier.

        Returns:
            The decoded document, or None if absent or expired.

        Raises:
            SessionStoreError: If Redis fails or the stored value is not JSON.
        """
        logger.debug("store find_one", session_id=document_id)
        try:
            raw = await self._redis.get(self._make_key(document_id))
            if raw is None:
                return None
            return json.loads(raw)
        except Exception as e:
            raise SessionStoreError(
                f"Failed to get session {document_id}: {e}",
                session_id=document_id,
            ) from e

    async def update(
        self,
        document_id: str,
        update_spec: dict[str, dict[str, Any]],
        upsert: bool = True,
    ) -> None:
        """
        Apply a partial update to a session document.

        The document is read, updated and written back inside a
        WATCH/MULTI/EXEC transaction; a concurrent write to the same key
        restarts the attempt.

        Args:
            document_id: The document's unique identifier.
            update_spec: Update specification (see docsession.sessions.update).
            upsert: Create the document if it does not exist.

        Raises:
            SessionStoreError: If Redis fails, the update cannot be applied
                to the stored document, or the key stays contended.
        """
        key = self._make_key(document_id)
        logger.debug(
            "store update",
            session_id=document_id,
            operators=sorted(update_spec),
            upsert=upsert,
        )

        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                for attempt in range(1, self._max_attempts + 1):
                    try:
                        await pipe.watch(key)
                        raw = await pipe.get(key)
                        if raw is None and not upsert:
                            await pipe.unwatch()
                            return
                        current = json.loads(raw) if raw is not None else None
                        document = _apply_atomically(document_id, current, update_spec)

                        pipe.multi()
                        pipe.set(key, json.dumps(document), ex=self._ttl_seconds)
                        await pipe.execute()
                        return
                    except WatchError:
                        logger.debug(
                            "store update contended, retrying",
                            session_id=document_id,
                            attempt=attempt,
                        )
                        continue
        except SessionStoreError:
            raise
        except Exception as e:
            raise SessionStoreError(
                f"Failed to save session {document_id}: {e}",
                session_id=document_id,
            ) from e

        raise SessionStoreError(
            f"Failed to save session {document_id}: key stayed contended "
            f"after {self._max_attempts} attempts",
            session_id=document_id,
        )

    async def remove(self, document_id: str) -> None:
        """
        Delete a session document.

        Args:
            document_id: The document's unique identifier.

        Raises:
            SessionStoreError: If the delete operation fails.
        """
        logger.debug("store remove", session_id=document_id)
        try:
            await self._redis.delete(self._make_key(document_id))
        except Exception as e:
            raise SessionStoreError(
                f"Failed to delete session {document_id}: {e}",
                session_id=document_id,
            ) from e

    async def exists(self, document_id: str) -> bool:
        """Return True if a document with this id is stored."""
        try:
            return await self._redis.exists(self._make_key(document_id)) > 0
        except Exception as e:
            raise SessionStoreError(
                f"Failed to check session {document_id}: {e}",
                session_id=document_id,
            ) from e


# =============================================================================
# InMemoryDocumentStore
# =============================================================================


class InMemoryDocumentStore:
    """
    Dict-backed document store.

    Documents are deep-copied on the way in and out, so callers never share
    state with the store. Not shared between processes.
    """

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._documents

    async def find_one(self, document_id: str) -> Optional[dict[str, Any]]:
        document = self._documents.get(document_id)
        return copy.deepcopy(document) if document is not None else None

    async def update(
        self,
        document_id: str,
        update_spec: dict[str, dict[str, Any]],
        upsert: bool = True,
    ) -> None:
        current = self._documents.get(document_id)
        if current is None and not upsert:
            return
        self._documents[document_id] = _apply_atomically(document_id, current, update_spec)

    async def remove(self, document_id: str) -> None:
        self._documents.pop(document_id, None)

    async def exists(self, document_id: str) -> bool:
        return document_id in self._documents
