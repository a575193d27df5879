from unittest.mock import AsyncMock, MagicMock

import pytest

from app.api import deps


@pytest.mark.asyncio
async def test_supabase_client_is_closed_after_request(monkeypatch):
    client = MagicMock()
    client.postgrest.aclose = AsyncMock()
    create_client = AsyncMock(return_value=client)
    monkeypatch.setattr(deps, "supabase_configured", lambda: True)
    monkeypatch.setattr(deps, "create_supabase_client", create_client)

    dependency = deps.get_supabase_client("caller-token")
    assert await dependency.__anext__() is client
    client.postgrest.aclose.assert_not_awaited()

    with pytest.raises(StopAsyncIteration):
        await dependency.__anext__()

    create_client.assert_awaited_once_with("caller-token")
    client.postgrest.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_supabase_client_closed_when_handler_fails(monkeypatch):
    client = MagicMock()
    client.postgrest.aclose = AsyncMock()
    monkeypatch.setattr(deps, "supabase_configured", lambda: True)
    monkeypatch.setattr(deps, "create_supabase_client", AsyncMock(return_value=client))

    dependency = deps.get_supabase_client(None)
    await dependency.__anext__()
    with pytest.raises(RuntimeError):
        await dependency.athrow(RuntimeError("handler failed"))

    client.postgrest.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_no_supabase_client_when_unconfigured(monkeypatch):
    monkeypatch.setattr(deps, "supabase_configured", lambda: False)

    dependency = deps.get_supabase_client(None)
    assert await dependency.__anext__() is None
    with pytest.raises(StopAsyncIteration):
        await dependency.__anext__()
