from passlib.context import CryptContext
from user_service.core.config import settings

pwd_ctx = CryptContext(schemes=[s.strip() for s in settings.PASSWORD_SCHEMES.split(',') if s.strip()], deprecated='auto')

def hash_password(p: str) -> str: return pwd_ctx.hash(p)
