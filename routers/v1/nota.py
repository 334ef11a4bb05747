# routers/v1/nota.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas import NotaSettingOut, NotaSettingUpdate
from services.nota_sequencer import get_nota_setting, peek_next_invoice_number, update_nota_setting

router = APIRouter(prefix="/nota-settings", tags=["nota"])


def _setting_out(db: Session) -> dict:
    row = get_nota_setting(db)
    return {
        "prefix": row.prefix,
        "start_number_str": row.start_number_str,
        "width": row.width,
        "next_number": peek_next_invoice_number(db),
    }


@router.get("", response_model=NotaSettingOut)
def read_nota_setting(db: Session = Depends(get_db)):
    out = _setting_out(db)
    db.commit()  # keep the seeded row
    return out


@router.put("", response_model=NotaSettingOut)
def put_nota_setting(payload: NotaSettingUpdate, db: Session = Depends(get_db)):
    update_nota_setting(db, prefix=payload.prefix, start_number_str=payload.start_number_str)
    return _setting_out(db)


@router.get("/next")
def preview_next_number(db: Session = Depends(get_db)):
    """Preview only: the number is consumed when an order is created."""
    return {"next_number": peek_next_invoice_number(db)}
