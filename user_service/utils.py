"""Funciones de utilidad para el hash de contraseñas."""

from passlib.context import CryptContext

from user_service.config import BCRYPT_ROUNDS


pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica una contraseña plana contra un hash almacenado."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Genera el hash salado de una contraseña plana usando bcrypt."""
    return pwd_context.hash(password)
