from enum import Enum
from typing import Callable, List, Optional, Type

from fastapi import APIRouter, Depends, HTTPException, Body, status
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from database import get_db
from utils import sa_to_dict, sa_update_from_dict


def _clean_payload(schema: Optional[Type[BaseModel]], payload: dict) -> dict:
    """Validate through `schema` (when given) and keep only the fields the client sent."""
    data = dict(payload or {})
    if schema is None:
        return data
    try:
        model = schema.model_validate(data)
    except PydanticValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    out = model.model_dump(exclude_unset=True)
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in out.items()}


def make_crud_router(
    Model,
    prefix: str,
    pk: str = "id",
    list_order_by: Optional = None,
    unique_fields: Optional[List[str]] = None,
    create_schema: Optional[Type[BaseModel]] = None,
    update_schema: Optional[Type[BaseModel]] = None,
    before_create: Optional[Callable[[Session, dict], None]] = None,
    before_update: Optional[Callable[[Session, object, dict], None]] = None,
):
    """
    Build a CRUD router for a catalog model:
    - GET /{prefix}            : list
    - GET /{prefix}/{id}       : get one
    - POST /{prefix}           : create
    - PUT /{prefix}/{id}       : update
    - DELETE /{prefix}/{id}    : delete (409 while still referenced)
    """
    router = APIRouter(prefix=f"/{prefix}", tags=[prefix])

    def _check_unique(db: Session, data: dict, own=None):
        if not unique_fields:
            return
        for f in unique_fields:
            if f in data and data[f] is not None:
                exists = db.scalars(select(Model).where(getattr(Model, f) == data[f])).first()
                if exists and (own is None or getattr(exists, pk) != getattr(own, pk)):
                    raise HTTPException(status_code=409, detail=f"{f} already exists")

    # List
    @router.get("")
    def list_items(db: Session = Depends(get_db)):
        stmt = select(Model)
        stmt = stmt.order_by(list_order_by if list_order_by is not None else getattr(Model, pk))
        rows = db.scalars(stmt).all()
        return [sa_to_dict(r) for r in rows]

    # Get one
    @router.get("/{item_id}")
    def get_item(item_id: int, db: Session = Depends(get_db)):
        obj = db.get(Model, item_id)
        if not obj:
            raise HTTPException(status_code=404, detail="Not found")
        return sa_to_dict(obj)

    # Create
    @router.post("", status_code=status.HTTP_201_CREATED)
    def create_item(payload: dict = Body(...), db: Session = Depends(get_db)):
        data = _clean_payload(create_schema, payload)
        data.pop(pk, None)
        _check_unique(db, data)

        # custom validation
        if before_create:
            before_create(db, data)

        obj = Model()
        sa_update_from_dict(obj, data)
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return sa_to_dict(obj)

    # Update
    @router.put("/{item_id}")
    def update_item(item_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
        obj = db.get(Model, item_id)
        if not obj:
            raise HTTPException(status_code=404, detail="Not found")

        data = _clean_payload(update_schema, payload)
        data.pop(pk, None)
        _check_unique(db, data, own=obj)

        if before_update:
            before_update(db, obj, data)

        sa_update_from_dict(obj, data)
        db.commit()
        db.refresh(obj)
        return sa_to_dict(obj)

    # Delete
    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_item(item_id: int, db: Session = Depends(get_db)):
        obj = db.get(Model, item_id)
        if not obj:
            raise HTTPException(status_code=404, detail="Not found")
        db.delete(obj)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(status_code=409, detail=f"{prefix} {item_id} is still in use")
        return None

    return router
