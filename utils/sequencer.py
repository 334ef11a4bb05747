# utils/sequencer.py
from sqlalchemy import text, select, update
from sqlalchemy.orm import Session
from models import DocCounter


def _dialect(db: Session) -> str:
    return db.get_bind().dialect.name


def next_seq(db: Session, doc_type: str) -> int:
    """Atomically issue the next value of a counter (first value is 1).

    Runs inside the caller's transaction, so a rollback also returns the
    number and no gap is left behind.
    """
    if _dialect(db) == "postgresql":
        # single statement: upsert + returning
        seq = db.execute(
            text("""
            INSERT INTO doc_counters (doc_type, seq)
            VALUES (:t, 1)
            ON CONFLICT (doc_type)
            DO UPDATE SET seq = doc_counters.seq + 1
            RETURNING seq
            """),
            {"t": doc_type},
        ).scalar_one()
        return seq

    # generic path: increment in SQL; the write lock is held until commit
    db.flush()
    res = db.execute(
        update(DocCounter)
        .where(DocCounter.doc_type == doc_type)
        .values(seq=DocCounter.seq + 1)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        db.add(DocCounter(doc_type=doc_type, seq=1))
        db.flush()
        return 1
    return db.execute(
        select(DocCounter.seq).where(DocCounter.doc_type == doc_type)
    ).scalar_one()


def current_seq(db: Session, doc_type: str) -> int:
    """Last issued value, 0 when nothing was issued yet."""
    seq = db.execute(
        select(DocCounter.seq).where(DocCounter.doc_type == doc_type)
    ).scalar_one_or_none()
    return seq or 0


def reset_seq(db: Session, doc_type: str, last_issued: int) -> None:
    """Set the counter so that the next issued value is `last_issued + 1`."""
    q = (
        select(DocCounter)
        .where(DocCounter.doc_type == doc_type)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    row = db.execute(q).scalar_one_or_none()
    if row is None:
        db.add(DocCounter(doc_type=doc_type, seq=last_issued))
    else:
        row.seq = last_issued
    db.flush()
