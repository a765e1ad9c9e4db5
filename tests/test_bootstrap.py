"""Tests for api.main.connect_store -- database connect retries at startup."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from api.main import connect_store

LOGGER = logging.getLogger("tests.bootstrap")


def _down() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


@pytest.mark.asyncio
async def test_connect_store_succeeds_first_try(settings_factory):
    settings = settings_factory(database_url="sqlite://", db_connect_retries=3)
    store = await connect_store(settings, LOGGER)
    try:
        store.ping()
    finally:
        store.close()


@pytest.mark.asyncio
async def test_connect_store_retries_then_succeeds(settings_factory):
    settings = settings_factory(db_connect_retries=3, db_connect_delay_seconds=0)
    healthy = MagicMock()
    with patch("api.main.UserStore", side_effect=[_down(), healthy]) as factory:
        store = await connect_store(settings, LOGGER)
    assert store is healthy
    assert factory.call_count == 2
    healthy.ping.assert_called_once()


@pytest.mark.asyncio
async def test_connect_store_gives_up(settings_factory):
    settings = settings_factory(db_connect_retries=2, db_connect_delay_seconds=0)
    with patch("api.main.UserStore", side_effect=_down()) as factory:
        with pytest.raises(OperationalError):
            await connect_store(settings, LOGGER)
    assert factory.call_count == 2
