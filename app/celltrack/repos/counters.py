from sqlalchemy import select, update

from app.celltrack.db.models import Counter


TRANSFER_FOLIO_COUNTER = "transfer_folio"
AUDIT_SEQUENCE_COUNTER = "audit_sequence"


class CounterRepository:
    """Named monotonic counters.

    `next_value` increments inside the caller's transaction with a single
    UPDATE, so the row stays locked until commit and a rollback gives the
    value back.
    """

    def __init__(self, db):
        self.db = db

    def next_value(self, name: str) -> int:
        result = self.db.execute(
            update(Counter)
            .where(Counter.name == name)
            .values(value=Counter.value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.add(Counter(name=name, value=1))
            self.db.flush()
            return 1
        return self.current_value(name)

    def current_value(self, name: str) -> int:
        value = self.db.execute(select(Counter.value).where(Counter.name == name)).scalar_one_or_none()
        return int(value or 0)

    def raise_to(self, name: str, value: int) -> int:
        current = self.db.execute(select(Counter.value).where(Counter.name == name)).scalar_one_or_none()
        if current is None:
            self.db.add(Counter(name=name, value=value))
            self.db.flush()
            return value
        if current < value:
            self.db.execute(
                update(Counter)
                .where(Counter.name == name)
                .values(value=value)
                .execution_options(synchronize_session=False)
            )
            return value
        return int(current)
