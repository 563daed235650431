# utils/hashing.py
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    # Placeholder hashes (e.g. the seeded demo account) are not valid bcrypt
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        return False
