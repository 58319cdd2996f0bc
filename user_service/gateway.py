"""Acceso a datos: sentencias parametrizadas y demarcación de transacciones sobre una sesión."""

from typing import List, Optional

from sqlalchemy.orm import Session

from user_service.models import Address, User


class UserGateway:
    """
    Ejecuta las sentencias de usuarios y direcciones sobre una única sesión.
    Lo insertado entre begin() y commit() es visible para las siguientes
    sentencias de la misma sesión y para nadie más hasta el commit.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- Transacciones ---

    def begin(self) -> None:
        if not self.db.in_transaction():
            self.db.begin()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    # --- Escrituras ---

    def insert_user(self, username: str, email: str, password_hash: str) -> int:
        """Inserta un usuario y devuelve el id generado."""
        new_user = User(username=username, email=email, password=password_hash)
        self.db.add(new_user)
        # flush para obtener el id sin cerrar la transacción
        self.db.flush()
        return new_user.id

    def insert_address(
        self,
        user_id: int,
        city: str,
        country: str,
        street: str,
        pincode: Optional[str] = None,
    ) -> int:
        new_address = Address(user_id=user_id, city=city, country=country, street=street, pincode=pincode)
        self.db.add(new_address)
        self.db.flush()
        return new_address.id

    # --- Lecturas ---

    def fetch_user(self, user_id: int):
        """Devuelve la fila (id, username, email) del usuario o None."""
        return (
            self.db.query(User.id, User.username, User.email)
            .filter(User.id == user_id)
            .first()
        )

    def fetch_addresses(self, user_id: int) -> List[Address]:
        return (
            self.db.query(Address)
            .filter(Address.user_id == user_id)
            .order_by(Address.id)
            .all()
        )

    def fetch_user_with_addresses(self, user_id: int) -> list:
        """INNER JOIN de 'users' y 'addresses' para un usuario, una fila por dirección."""
        return (
            self.db.query(
                User.id,
                User.username,
                User.email,
                Address.city,
                Address.country,
                Address.street,
                Address.pincode,
            )
            .join(Address, User.id == Address.user_id)
            .filter(User.id == user_id)
            .order_by(Address.id)
            .all()
        )
