"""Record snapshot loading: the storage side of every analytics call."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from farmledger.models.records import Crop, Expense, Sale
from farmledger.schemas.records import ExpenseRecord, ProductionUnit, RecordSnapshot, SaleRecord

logger = structlog.get_logger("farmledger.records")


class RecordService:
	"""Reads crops, expenses and sales once and normalizes them into record models."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def load_snapshot(self) -> RecordSnapshot:
		crops = await self.db.execute(select(Crop).order_by(Crop.planting_date, Crop.id))
		expenses = await self.db.execute(select(Expense).order_by(Expense.date, Expense.id))
		sales = await self.db.execute(select(Sale).order_by(Sale.sale_date, Sale.id))

		snapshot = RecordSnapshot(
			units=tuple(ProductionUnit.model_validate(row) for row in crops.scalars().all()),
			expenses=tuple(ExpenseRecord.model_validate(row) for row in expenses.scalars().all()),
			sales=tuple(SaleRecord.model_validate(row) for row in sales.scalars().all()),
		)
		logger.debug(
			"record_snapshot_loaded",
			units=len(snapshot.units),
			expenses=len(snapshot.expenses),
			sales=len(snapshot.sales),
		)
		return snapshot

	async def get_unit(self, unit_id: uuid.UUID) -> ProductionUnit:
		row = await self.db.execute(select(Crop).where(Crop.id == unit_id))
		crop = row.scalar_one_or_none()
		if crop is None:
			raise LookupError(f"Production unit {unit_id} not found")
		return ProductionUnit.model_validate(crop)
