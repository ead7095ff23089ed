# licensestore/services/sql_store.py
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..errors import BackendUnavailable
from ..extensions import db
from ..model import StoreOrder
from .record_store import RecordStore

logger = logging.getLogger(__name__)


def _pk(record_id) -> Optional[int]:
    try:
        return int(record_id)
    except (TypeError, ValueError):
        return None


class SqlRecordStore(RecordStore):
    """Order records kept in the application's own database."""

    def _query(self, filters: dict):
        allowed = StoreOrder.writable_fields()
        unknown = set(filters) - allowed
        if unknown:
            raise ValueError(f"unknown filter fields: {', '.join(sorted(unknown))}")
        return StoreOrder.query.filter_by(**filters)

    def _fail(self, action: str, exc: Exception):
        db.session.rollback()
        logger.error("order store %s failed: %s", action, exc)
        return BackendUnavailable("Order storage is unavailable")

    def find_first(self, filters):
        try:
            row = self._query(filters).order_by(StoreOrder.id.asc()).first()
        except SQLAlchemyError as e:
            raise self._fail("lookup", e)
        return row.as_record() if row else None

    def create(self, data):
        row = StoreOrder()
        row.assign({k: v for k, v in data.items() if k in StoreOrder.writable_fields()})
        try:
            db.session.add(row)
            db.session.commit()
        except SQLAlchemyError as e:
            raise self._fail("create", e)
        return row.as_record()

    def update(self, record_id, data):
        try:
            row = db.session.get(StoreOrder, _pk(record_id)) if _pk(record_id) else None
            if row is None:
                raise BackendUnavailable(f"order {record_id} not found for update")
            row.assign({k: v for k, v in data.items() if k in StoreOrder.writable_fields()})
            db.session.commit()
        except SQLAlchemyError as e:
            raise self._fail("update", e)
        return row.as_record()

    def get(self, record_id):
        pk = _pk(record_id)
        if pk is None:
            return None
        try:
            row = db.session.get(StoreOrder, pk)
        except SQLAlchemyError as e:
            raise self._fail("get", e)
        return row.as_record() if row else None

    def list_records(self, filters, page=1, per_page=20):
        try:
            q = self._query(filters).order_by(StoreOrder.created.desc(), StoreOrder.id.desc())
            paged = q.paginate(page=page, per_page=per_page, error_out=False)
        except SQLAlchemyError as e:
            raise self._fail("list", e)
        return [o.as_record() for o in paged.items], paged.total
