"""Shared pytest fixtures: async test client, fake DB session, record payload builders."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from farmledger.database import get_db
from farmledger.main import app
from farmledger.schemas.records import RecordSnapshot

TOMATO_ID = uuid.UUID("00000000-0000-0000-0000-00000000000a")
CORN_ID = uuid.UUID("00000000-0000-0000-0000-00000000000b")
GOATS_ID = uuid.UUID("00000000-0000-0000-0000-00000000000c")


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and DB dependency mocked."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()


@pytest.fixture
def make_unit() -> Callable[..., dict[str, Any]]:
	def _make(**overrides: Any) -> dict[str, Any]:
		unit: dict[str, Any] = {
			"id": str(uuid.uuid4()),
			"name": "Unit",
			"type": "Tomato",
			"status": "PLANTED",
			"planting_date": "2024-01-01",
		}
		unit.update(overrides)
		return unit

	return _make


@pytest.fixture
def make_expense() -> Callable[..., dict[str, Any]]:
	def _make(unit_id: uuid.UUID | str, amount: Any, on: str, **overrides: Any) -> dict[str, Any]:
		expense: dict[str, Any] = {
			"id": str(uuid.uuid4()),
			"unit_id": str(unit_id),
			"category": "OTHER",
			"amount": amount,
			"date": on,
		}
		expense.update(overrides)
		return expense

	return _make


@pytest.fixture
def make_sale() -> Callable[..., dict[str, Any]]:
	def _make(unit_id: uuid.UUID | str, quantity: Any, unit_price: Any, on: str, **overrides: Any) -> dict[str, Any]:
		sale: dict[str, Any] = {
			"id": str(uuid.uuid4()),
			"unit_id": str(unit_id),
			"quantity": quantity,
			"unit_price": unit_price,
			"sale_date": on,
		}
		sale.update(overrides)
		return sale

	return _make


@pytest.fixture
def farm_payload(
	make_unit: Callable[..., dict[str, Any]],
	make_expense: Callable[..., dict[str, Any]],
	make_sale: Callable[..., dict[str, Any]],
) -> dict[str, Any]:
	"""Three units over Q1 2024.

	- North tomatoes: sold without sale records, priced at 10 x 20 on 2024-03-15.
	- South corn: still growing, 50 expected at 3.
	- Goat herd: sold through one sale record (2 x 75) whose stored total is stale.
	"""
	return {
		"production_units": [
			make_unit(
				id=str(TOMATO_ID),
				name="North tomatoes",
				type="Tomato",
				status="SOLD",
				planting_date="2024-01-01",
				actual_harvest_date="2024-03-15",
				area=2,
				actual_yield=10,
				market_price=20,
			),
			make_unit(
				id=str(CORN_ID),
				name="South corn",
				type="Corn",
				status="GROWING",
				planting_date="2024-02-01",
				area=4,
				expected_yield=50,
				market_price=3,
			),
			make_unit(
				id=str(GOATS_ID),
				name="Goat herd",
				type="Goats",
				status="SOLD",
				planting_date="2024-01-10",
				actual_yield=3,
				market_price=500,
			),
		],
		"expenses": [
			make_expense(TOMATO_ID, 100, "2024-01-05", category="SEEDS"),
			make_expense(TOMATO_ID, 50, "2024-02-10", category="LABOR"),
			make_expense(CORN_ID, 150, "2024-02-20", category="FERTILIZER"),
			make_expense(GOATS_ID, 60, "2024-03-01", category="FEED"),
		],
		"sales": [
			make_sale(GOATS_ID, 2, 75, "2024-03-20", sale_type="ANIMAL", total_amount=999),
		],
	}


@pytest.fixture
def farm_snapshot(farm_payload: dict[str, Any]) -> RecordSnapshot:
	return RecordSnapshot.from_payload(farm_payload)


@pytest.fixture
def unit_ids() -> SimpleNamespace:
	return SimpleNamespace(tomato=TOMATO_ID, corn=CORN_ID, goats=GOATS_ID)
