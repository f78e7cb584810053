"""
Contract tests for the cache deletion client.

Validates the DELETE request layout, headers and result mapping.
"""

import httpx
import pytest

from stickydisk.domain.value_objects import CacheDeletionOutcome
from stickydisk.infrastructure.http import (
    CacheDeletionClient,
    CacheDeletionError,
    CacheValidationError,
    build_deletion_path,
)


def make_client(handler) -> CacheDeletionClient:
    return CacheDeletionClient(
        base_url="https://cache.example.test/",
        token="cache-token",
        repo_name="acme/widgets",
        region="eu-central",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.contract
@pytest.mark.asyncio
async def test_delete_cache_contract():
    """
    Validates:
    - DELETE to /caches/{key}
    - Accept, Authorization, X-GitHub-Repo-Name and X-Cache-Region headers
    - deleted count taken from the response body
    """
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["url"] = str(request.url)
        captured["headers"] = request.headers
        return httpx.Response(200, json={"deleted_count": 3})

    result = await make_client(handler).delete_cache("npm-cache")

    assert captured["method"] == "DELETE"
    assert captured["url"] == "https://cache.example.test/caches/npm-cache"
    assert captured["headers"]["accept"] == "application/json; version=6.0-preview.1"
    assert captured["headers"]["authorization"] == "Bearer cache-token"
    assert captured["headers"]["x-github-repo-name"] == "acme/widgets"
    assert captured["headers"]["x-cache-region"] == "eu-central"
    assert result.outcome == CacheDeletionOutcome.DELETED
    assert result.found
    assert result.deleted_count == 3


@pytest.mark.contract
@pytest.mark.asyncio
async def test_delete_by_prefix():
    urls = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(200, json={"deletedCount": 12})

    result = await make_client(handler).delete_cache("npm-", prefix=True)

    assert urls == ["https://cache.example.test/caches/npm-?prefix"]
    assert result.deleted_count == 12


@pytest.mark.contract
@pytest.mark.asyncio
async def test_missing_cache_is_not_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    result = await make_client(handler).delete_cache("npm-cache", version="v2")

    assert result.outcome == CacheDeletionOutcome.NOT_FOUND
    assert not result.found
    assert "npm-cache" in result.message


@pytest.mark.contract
@pytest.mark.asyncio
async def test_server_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="internal error")

    with pytest.raises(CacheDeletionError) as exc_info:
        await make_client(handler).delete_cache("npm-cache")

    assert exc_info.value.status_code == 500


@pytest.mark.contract
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "key,version,prefix,message",
    [
        ("", None, False, "key cannot be empty unless prefix is true"),
        ("npm-", "v1", True, "version cannot be combined with prefix"),
        ("", "v1", True, "version cannot be combined with prefix"),
        ("", "v1", False, "version requires a non-empty key"),
    ],
)
async def test_invalid_requests_are_not_sent(key, version, prefix, message):
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(200)

    with pytest.raises(CacheValidationError) as exc_info:
        await make_client(handler).delete_cache(key, version=version, prefix=prefix)

    assert str(exc_info.value) == message
    assert sent == []


def test_deletion_path_encodes_key_and_version():
    assert build_deletion_path("npm cache/linux", "v 1") == "/caches/npm%20cache%2Flinux/v%201"
