import asyncio

import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from app.errors import Unavailable
from app.services.stores import guarded, parse_object_id


async def _hang():
    await asyncio.sleep(10)


async def _fail(exc):
    raise exc


async def test_timeout_surfaces_as_unavailable():
    with pytest.raises(Unavailable) as exc:
        await guarded(_hang(), "test", timeout=0.01)
    assert exc.value.retryable is True
    assert exc.value.status_code == 503


async def test_lost_connection_surfaces_as_unavailable():
    with pytest.raises(Unavailable):
        await guarded(_fail(ServerSelectionTimeoutError("no servers")), "test")


async def test_duplicate_key_passes_through():
    with pytest.raises(DuplicateKeyError):
        await guarded(_fail(DuplicateKeyError("dup")), "test")


def test_parse_object_id():
    assert parse_object_id("652f1c2e9b1e8a0012345678") is not None
    assert parse_object_id("nope") is None
