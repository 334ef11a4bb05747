# services/nota_sequencer.py
import logging
import re
from typing import Optional

from sqlalchemy.orm import Session

from config import settings
from models import DocCounter, NotaSetting, Order
from services.errors import ValidationError
from utils.sequencer import current_seq, next_seq, reset_seq

logger = logging.getLogger(__name__)

NOTA_DOC_TYPE = "NOTA"
NOTA_SETTING_ID = 1


def format_nota(prefix: str, number: int, width: int) -> str:
    """<PREFIX>-<number zero-padded to width>; longer numbers widen, never truncate."""
    return f"{prefix}-{str(number).zfill(width)}"


def _check_prefix(prefix: Optional[str]) -> str:
    p = (prefix or "").strip()
    if not p or any(ch.isspace() for ch in p):
        raise ValidationError(
            "nota prefix must be non-empty and contain no whitespace",
            invariant="nota_prefix_format",
        )
    return p


def _check_start(start_number_str: Optional[str]) -> str:
    s = (start_number_str or "").strip()
    if not s or not (s.isascii() and s.isdigit()):
        raise ValidationError(
            "nota start number must be digits only, e.g. '001'",
            invariant="nota_start_format",
        )
    if int(s) < 1:
        raise ValidationError("nota start number must be at least 1", invariant="nota_start_format")
    return s


def get_nota_setting(db: Session) -> NotaSetting:
    """Current nota setting; seeded from NOTA_PREFIX / NOTA_START on first use."""
    row = db.get(NotaSetting, NOTA_SETTING_ID)
    if row is not None:
        return row

    prefix = _check_prefix(settings.nota_prefix)
    start = _check_start(settings.nota_start)
    row = NotaSetting(id=NOTA_SETTING_ID, prefix=prefix, start_number_str=start, width=len(start))
    db.add(row)
    if db.get(DocCounter, NOTA_DOC_TYPE) is None:
        # configured start is the first issued number
        reset_seq(db, NOTA_DOC_TYPE, int(start) - 1)
    db.flush()
    return row


def next_invoice_number(db: Session) -> str:
    """Consume and return the next nota number. Caller owns the transaction."""
    setting = get_nota_setting(db)
    number = next_seq(db, NOTA_DOC_TYPE)
    return format_nota(setting.prefix, number, setting.width)


def peek_next_invoice_number(db: Session) -> str:
    setting = get_nota_setting(db)
    return format_nota(setting.prefix, current_seq(db, NOTA_DOC_TYPE) + 1, setting.width)


def highest_issued(db: Session, prefix: str) -> int:
    """Largest number already on an order under `prefix`, 0 when none.

    Matches on the numeric part, so "INV-2" and "INV-002" are the same number.
    """
    pat = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
    like = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "-%"
    rows = db.query(Order.nota_no).filter(Order.nota_no.like(like, escape="\\")).all()
    max_n = 0
    for (nota_no,) in rows:
        m = pat.match(nota_no or "")
        if m:
            max_n = max(max_n, int(m.group(1)))
    return max_n


def update_nota_setting(
    db: Session,
    *,
    prefix: Optional[str] = None,
    start_number_str: Optional[str] = None,
) -> NotaSetting:
    """Change prefix and/or restart numbering. Existing orders keep their numbers.

    A new start number must lie above everything issued under the target
    prefix. A prefix-only change keeps the counter running, moved past the
    target prefix's highest issued number when that one is further ahead.
    """
    row = get_nota_setting(db)
    new_prefix = row.prefix if prefix is None else _check_prefix(prefix)
    last = current_seq(db, NOTA_DOC_TYPE)
    issued = highest_issued(db, new_prefix)
    if new_prefix == row.prefix:
        # the counter also covers numbers of orders deleted since
        issued = max(issued, last)

    if start_number_str is not None:
        start = _check_start(start_number_str)
        first = int(start)
        if first <= issued:
            raise ValidationError(
                f"start number {start} would reissue numbers already used under prefix "
                f"{new_prefix} (highest issued {issued})",
                invariant="nota_numbers_never_reused",
            )
        reset_seq(db, NOTA_DOC_TYPE, first - 1)
        row.start_number_str = start
        row.width = len(start)
    elif issued > last:
        logger.warning(
            "nota counter moved from %s to %s: prefix %s already issued up to %s",
            last, issued, new_prefix, issued,
        )
        reset_seq(db, NOTA_DOC_TYPE, issued)

    row.prefix = new_prefix
    db.commit()
    db.refresh(row)
    logger.info(
        "nota setting updated prefix=%s start=%s width=%s next=%s",
        row.prefix, row.start_number_str, row.width, current_seq(db, NOTA_DOC_TYPE) + 1,
    )
    return row
