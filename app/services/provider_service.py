"""Provider directory service."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ProviderNotFound
from app.core.redis_client import CacheManager
from app.models.providers import providers
from app.schemas.providers import ProviderCreate, ProviderUpdate

logger = structlog.get_logger(__name__)


class ProviderService:
    """Service for provider directory lookups and administrative edits."""

    # Cache TTL in seconds
    PROVIDER_CACHE_TTL = 900  # 15 minutes for individual providers
    PROVIDER_LIST_CACHE_TTL = 300  # 5 minutes for lists

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager

    @staticmethod
    def _get_provider_cache_key(provider_id: UUID | str) -> str:
        """Generate cache key for provider."""
        return f"provider:{provider_id}"

    def _invalidate(self, provider_id: UUID | None = None) -> None:
        if not self.cache:
            return
        if provider_id is not None:
            self.cache.delete(self._get_provider_cache_key(provider_id))
        self.cache.delete_pattern("provider:list:*")

    async def create_provider(self, db: AsyncSession, provider_data: ProviderCreate) -> dict:
        """Create a new provider profile."""
        now = datetime.now(UTC)
        query = (
            providers.insert()
            .values(
                id=uuid4(),
                created_at=now,
                updated_at=now,
                **provider_data.model_dump(),
            )
            .returning(providers)
        )

        result = await db.execute(query)
        provider = result.mappings().first()

        if not provider:
            raise ValueError("Failed to create provider")

        await db.commit()
        self._invalidate()

        logger.info("provider_created", provider_id=str(provider["id"]))
        return dict(provider)

    async def _cached(self, key: str, loader, ttl: int):
        if self.cache is None:
            return await loader()
        return await self.cache.get_or_load(key, loader, ttl=ttl)

    async def get_provider_by_id(self, db: AsyncSession, provider_id: UUID) -> dict | None:
        """Get provider by ID, read through the cache."""

        async def load() -> dict | None:
            result = await db.execute(select(providers).where(providers.c.id == provider_id))
            row = result.mappings().first()
            return dict(row) if row else None

        return await self._cached(
            self._get_provider_cache_key(provider_id), load, self.PROVIDER_CACHE_TTL
        )

    async def require_provider(self, db: AsyncSession, provider_id: UUID) -> dict:
        """
        Get provider by ID or fail.

        Raises:
            ProviderNotFound: If no provider has this ID
        """
        provider = await self.get_provider_by_id(db, provider_id)
        if provider is None:
            raise ProviderNotFound(provider_id)
        return provider

    async def list_providers(
        self,
        db: AsyncSession,
        skip: int = 0,
        limit: int = 20,
        specialization: str | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """List providers ordered by name, optionally filtered by specialization."""
        conditions = []
        if specialization:
            conditions.append(providers.c.specialization.ilike(f"%{specialization}%"))

        async def load() -> dict[str, Any]:
            count_query = select(func.count()).select_from(providers).where(*conditions)
            total = (await db.execute(count_query)).scalar() or 0

            query = (
                select(providers)
                .where(*conditions)
                .order_by(providers.c.name)
                .offset(skip)
                .limit(limit)
            )
            result = await db.execute(query)
            return {"items": [dict(row) for row in result.mappings().all()], "total": total}

        page = await self._cached(
            f"provider:list:{skip}:{limit}:{(specialization or 'all').lower()}",
            load,
            self.PROVIDER_LIST_CACHE_TTL,
        )
        return page["items"], page["total"]

    async def update_provider(
        self,
        db: AsyncSession,
        provider_id: UUID,
        provider_data: ProviderUpdate,
    ) -> dict:
        """
        Update a provider profile.

        Raises:
            ProviderNotFound: If no provider has this ID
        """
        update_values = provider_data.model_dump(exclude_unset=True, exclude_none=True)
        if not update_values:
            return await self.require_provider(db, provider_id)

        update_values["updated_at"] = datetime.now(UTC)
        query = (
            providers.update()
            .where(providers.c.id == provider_id)
            .values(**update_values)
            .returning(providers)
        )
        result = await db.execute(query)
        provider = result.mappings().first()

        if not provider:
            raise ProviderNotFound(provider_id)

        await db.commit()
        self._invalidate(provider_id)

        logger.info("provider_updated", provider_id=str(provider_id), fields=sorted(update_values))
        return dict(provider)
