import logging
from fastapi import APIRouter, Depends, HTTPException
from typing import List
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from user_service.api.deps import get_db
from user_service.api.v1.schemas import UserCreate, UserRead
from user_service.db.models import User
from user_service.security.utils import hash_password

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("", response_model=List[UserRead])
def list_users(db: Session = Depends(get_db)):
    return db.query(User).order_by(User.id).all()

@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user: raise HTTPException(status_code=404, detail="User not found")
    return user

@router.post("", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    if not payload.username or not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Username, email, and password are required")
    user = User(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Username or email already exists")
    db.refresh(user)
    logger.info("created user %s (%s)", user.id, user.username)
    return user
