"""Tests for the Redis-backed provider cache."""

import json
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
import redis

from app.core.redis_client import CacheManager
from app.schemas.providers import ProviderUpdate
from app.services.provider_service import ProviderService


def test_cache_manager_get_json():
    """Test CacheManager get_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Test cache miss
    mock_redis.get.return_value = None
    assert cache_manager.get_json("provider:1") is None
    mock_redis.get.assert_called_once_with("provider:1")

    # Test cache hit
    mock_redis.reset_mock()
    mock_redis.get.return_value = '{"name": "Dr. Sarah Johnson", "availability": ["Mon"]}'
    result = cache_manager.get_json("provider:1")
    assert result == {"name": "Dr. Sarah Johnson", "availability": ["Mon"]}


def test_cache_manager_get_json_corrupt_value():
    """Test a corrupt cached value is treated as a miss."""
    mock_redis = MagicMock()
    mock_redis.get.return_value = "{not json"
    assert CacheManager(redis_client=mock_redis).get_json("provider:1") is None


def test_cache_manager_set_json():
    """Test CacheManager set_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Test without TTL
    assert cache_manager.set_json("provider:1", {"name": "Test"}) is True
    mock_redis.set.assert_called_once()

    # Test with TTL
    mock_redis.reset_mock()
    assert cache_manager.set_json("provider:1", {"name": "Test"}, ttl=300) is True
    mock_redis.setex.assert_called_once()
    assert mock_redis.setex.call_args.args[1] == 300


def test_cache_manager_delete_pattern():
    """Test CacheManager delete_pattern method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    mock_redis.scan_iter.return_value = iter(
        ["provider:list:0:20:all", "provider:list:20:20:all", "provider:list:0:20:cardio"]
    )
    mock_redis.delete.return_value = 3

    result = cache_manager.delete_pattern("provider:list:*")

    mock_redis.scan_iter.assert_called_once_with(match="provider:list:*")
    assert result == 3


def test_cache_manager_degrades_when_redis_down():
    """Test Redis errors turn into misses and no-ops."""
    mock_redis = MagicMock()
    mock_redis.get.side_effect = redis.ConnectionError("down")
    mock_redis.setex.side_effect = redis.ConnectionError("down")
    mock_redis.delete.side_effect = redis.ConnectionError("down")
    mock_redis.scan_iter.side_effect = redis.ConnectionError("down")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("provider:1") is None
    assert cache_manager.set_json("provider:1", {}, ttl=60) is False
    assert cache_manager.delete("provider:1") is False
    assert cache_manager.delete_pattern("provider:*") == 0


@pytest.mark.asyncio
async def test_provider_lookup_reads_through_cache(db_session, provider):
    """Test a miss loads from the database and stores the row; a hit skips it."""
    mock_redis = MagicMock()
    mock_redis.get.return_value = None
    service = ProviderService(cache_manager=CacheManager(redis_client=mock_redis))

    result = await service.get_provider_by_id(db_session, provider["id"])

    assert result["name"] == "Dr. Sarah Johnson"
    mock_redis.setex.assert_called_once()
    key, ttl, payload = mock_redis.setex.call_args.args
    assert key == f"provider:{provider['id']}"
    assert ttl == ProviderService.PROVIDER_CACHE_TTL
    assert '"availability": ["Mon", "Wed", "Fri"]' in payload

    mock_redis.get.return_value = json.dumps({"id": str(provider["id"]), "name": "Cached"})
    cached = await service.get_provider_by_id(db_session, provider["id"])
    assert cached["name"] == "Cached"


@pytest.mark.asyncio
async def test_missing_provider_is_not_cached(db_session):
    """Test a lookup miss is not stored."""
    mock_redis = MagicMock()
    mock_redis.get.return_value = None
    service = ProviderService(cache_manager=CacheManager(redis_client=mock_redis))

    assert await service.get_provider_by_id(db_session, uuid4()) is None
    mock_redis.setex.assert_not_called()


@pytest.mark.asyncio
async def test_provider_update_invalidates_cache(db_session, provider):
    """Test updates drop the provider entry and every list page."""
    cache = MagicMock()
    service = ProviderService(cache_manager=cache)

    await service.update_provider(
        db_session, provider["id"], ProviderUpdate(availability=["Tue", "Thu"])
    )

    cache.delete.assert_called_once_with(f"provider:{provider['id']}")
    cache.delete_pattern.assert_called_once_with("provider:list:*")
