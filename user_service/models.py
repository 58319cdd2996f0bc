"""Define los modelos de las tablas 'users' y 'addresses' usando SQLAlchemy ORM."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from user_service.db import Base


class User(Base):
    """
    Modelo SQLAlchemy que representa la tabla 'users'.
    Almacena los datos de registro; la contraseña se guarda solo como hash bcrypt.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(50), unique=True, nullable=False)
    # Hash de la contraseña (nunca se devuelve al cliente)
    password = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Las direcciones se borran en la base de datos (ON DELETE CASCADE)
    addresses = relationship(
        "Address",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Address(Base):
    """
    Modelo SQLAlchemy que representa la tabla 'addresses'.
    Cada dirección pertenece obligatoriamente a un usuario.
    """
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    city = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)
    street = Column(String(100), nullable=False)
    pincode = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="addresses")
