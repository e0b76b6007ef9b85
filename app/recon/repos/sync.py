from __future__ import annotations

from collections.abc import Iterable, Iterator

from sqlalchemy import delete, select

from app.recon.db.models import BankReceipt, CashReceipt, Cashier, Reconciliation

# Keeps IN (...) lists under the SQLite bound-parameter limit.
CHUNK_SIZE = 500


def chunked(values: Iterable[int], size: int = CHUNK_SIZE) -> Iterator[list[int]]:
    chunk: list[int] = []
    for value in values:
        chunk.append(value)
        if len(chunk) >= size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk


class SyncRepository:
    """Id-keyed bulk writes used by the sync reconciler.

    Nothing here commits; the caller owns the transaction.
    """

    def __init__(self, db):
        self.db = db

    def get_many(self, model, ids: Iterable[int]) -> dict[int, object]:
        found: dict[int, object] = {}
        for chunk in chunked(ids):
            rows = self.db.execute(select(model).where(model.id.in_(chunk))).scalars().all()
            found.update({row.id: row for row in rows})
        return found

    def upsert(self, model, rows: dict[int, dict], update_fields: tuple[str, ...] | None = None) -> tuple[int, int]:
        existing = self.get_many(model, rows.keys())
        inserted = 0
        updated = 0
        for record_id, values in rows.items():
            current = existing.get(record_id)
            if current is None:
                self.db.add(model(id=record_id, **values))
                inserted += 1
                continue
            for field, value in values.items():
                if update_fields is not None and field not in update_fields:
                    continue
                setattr(current, field, value)
            updated += 1
        self.db.flush()
        return inserted, updated

    def all_ids(self, model) -> set[int]:
        return set(self.db.execute(select(model.id)).scalars().all())

    def existing_ids(self, model, ids: Iterable[int]) -> set[int]:
        found: set[int] = set()
        for chunk in chunked(ids):
            found.update(self.db.execute(select(model.id).where(model.id.in_(chunk))).scalars().all())
        return found

    def delete_ids(self, model, ids: Iterable[int]) -> int:
        deleted = 0
        for chunk in chunked(ids):
            result = self.db.execute(
                delete(model).where(model.id.in_(chunk)).execution_options(synchronize_session=False)
            )
            deleted += result.rowcount or 0
        return deleted

    def delete_all(self, model) -> int:
        result = self.db.execute(delete(model).execution_options(synchronize_session=False))
        return result.rowcount or 0

    def delete_except(self, model, keep_ids: set[int]) -> int:
        if not keep_ids:
            return self.delete_all(model)
        return self.delete_ids(model, sorted(self.all_ids(model) - keep_ids))

    def reconciliation_statuses(self, ids: Iterable[int]) -> dict[int, str]:
        statuses: dict[int, str] = {}
        for chunk in chunked(ids):
            rows = self.db.execute(
                select(Reconciliation.id, Reconciliation.status).where(Reconciliation.id.in_(chunk))
            ).all()
            statuses.update({row.id: row.status for row in rows})
        return statuses

    def delete_receipts_for(self, reconciliation_ids: Iterable[int]) -> int:
        deleted = 0
        for chunk in chunked(reconciliation_ids):
            for model in (BankReceipt, CashReceipt):
                result = self.db.execute(
                    delete(model)
                    .where(model.reconciliation_id.in_(chunk))
                    .execution_options(synchronize_session=False)
                )
                deleted += result.rowcount or 0
        return deleted

    def cashier_names(self, cashier_ids: Iterable[int]) -> dict[int, str]:
        names: dict[int, str] = {}
        for chunk in chunked(sorted(cashier_ids)):
            rows = self.db.execute(select(Cashier.id, Cashier.name).where(Cashier.id.in_(chunk))).all()
            names.update({row.id: row.name for row in rows if row.name})
        return names
