from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy import create_engine
from user_service.core.config import settings

class Base(DeclarativeBase): pass
engine = create_engine(
    settings.POSTGRES_DSN,
    pool_pre_ping=True,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_timeout=settings.DB_POOL_TIMEOUT_SECONDS,
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
