"""Basic API smoke tests: health, OpenAPI document, empty listing."""

import pytest


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["version"]


@pytest.mark.asyncio
async def test_openapi_lists_routes(client):
    r = await client.get("/openapi.json")
    assert r.status_code == 200
    paths = r.json()["paths"]
    assert "/api/v1/auth/sign-in" in paths
    assert "/api/v1/users/{user_id}" in paths
    assert "/api/v1/auth/ext/{provider}/callback" in paths


@pytest.mark.asyncio
async def test_users_list_empty(client):
    r = await client.get("/api/v1/users")
    assert r.status_code == 200
    data = r.json()
    assert data["current_count"] == 0
    assert data["edges"] == []
