import logging
from fastapi import APIRouter, Depends, HTTPException
from typing import List
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from product_service.api.deps import get_db
from product_service.db import models
from product_service.schemas import ProductCreate, ProductUpdate, ProductRead

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get('', response_model=List[ProductRead])
def list_products(db: Session = Depends(get_db)):
    stmt = select(models.Product).order_by(models.Product.created_at.desc(), models.Product.id.desc())
    return db.execute(stmt).scalars().all()

@router.get('/{product_id}', response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    obj = db.get(models.Product, product_id)
    if not obj: raise HTTPException(status_code=404, detail='Product not found')
    return obj

@router.post('', response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    if not payload.name or payload.price is None:
        raise HTTPException(status_code=400, detail='Name and price are required')
    obj = models.Product(
        name=payload.name,
        description=payload.description or '',
        price=payload.price,
        stock_quantity=payload.stock_quantity or 0,
    )
    db.add(obj); db.commit(); db.refresh(obj)
    logger.info('created product %s (%s @ %s)', obj.id, obj.name, obj.price)
    return obj

@router.put('/{product_id}', response_model=ProductRead)
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    obj = db.get(models.Product, product_id)
    if not obj: raise HTTPException(status_code=404, detail='Product not found')
    # omitted or null fields keep their stored value
    for k, v in payload.model_dump(exclude_none=True).items(): setattr(obj, k, v)
    obj.updated_at = datetime.utcnow()
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.delete('/{product_id}')
def delete_product(product_id: int, db: Session = Depends(get_db)):
    obj = db.get(models.Product, product_id)
    if not obj: raise HTTPException(status_code=404, detail='Product not found')
    try:
        db.delete(obj); db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail='Product is referenced by existing orders')
    logger.info('deleted product %s', product_id)
    return {'message': 'Product deleted successfully'}
