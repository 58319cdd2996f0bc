"""Flujos de negocio: registro transaccional y las dos variantes de consulta de usuario."""

import logging
import re
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError

from user_service.errors import ErrorKind, ServiceError
from user_service.gateway import UserGateway
from user_service.schemas import (
    AddressResponse,
    JoinedUserResponse,
    UserAddressRow,
    UserResponse,
    UserWithAddressesResponse,
)
from user_service.utils import get_password_hash
from user_service.validation import validate_signup

logger = logging.getLogger(__name__)

# Rango de un INTEGER de PostgreSQL (columna SERIAL)
MAX_USER_ID = 2**31 - 1

# Solo dígitos ASCII: int() también acepta "1_0", "+3" y dígitos no latinos
USER_ID_PATTERN = re.compile(r"[0-9]+")

INVALID_ENTRY = "Invalid Entry"
INSERT_FAILED = "Error Inserting Data"
FETCH_FAILED = "Error Fetching Data"
USER_NOT_FOUND = "User Not Found"


def parse_user_id(raw_id: Any) -> Optional[int]:
    """Convierte el id de la query string; None si no puede referirse a ningún usuario."""
    if raw_id is None:
        return None
    text = str(raw_id).strip()
    if not USER_ID_PATTERN.fullmatch(text):
        return None
    user_id = int(text)
    if user_id < 1 or user_id > MAX_USER_ID:
        return None
    return user_id


def register_user(gateway: UserGateway, payload: Any) -> int:
    """
    Registra un usuario con su dirección inicial.

    Valida los siete campos, calcula el hash de la contraseña e inserta el
    usuario y la dirección en una sola transacción. Si algo falla después de
    abrirla se hace rollback: o existen ambas filas o ninguna.

    Returns:
        El id generado para el nuevo usuario.

    Raises:
        ServiceError: VALIDATION_FAILED sin escribir nada, o CONFLICT_DUPLICATE /
        PERSISTENCE_UNAVAILABLE tras el rollback.
    """
    verdict = validate_signup(payload)
    if not verdict.ok:
        raise ServiceError(ErrorKind.VALIDATION_FAILED, INVALID_ENTRY)

    signup = verdict.request
    try:
        hashed_password = get_password_hash(signup.password)

        gateway.begin()
        user_id = gateway.insert_user(signup.username, signup.email, hashed_password)
        logger.info(f"Usuario insertado en 'users' con id {user_id}")

        gateway.insert_address(user_id, signup.city, signup.country, signup.street, signup.pincode)
        logger.info(f"Dirección insertada en 'addresses' para user_id {user_id}")

        gateway.commit()
    except IntegrityError as e:
        gateway.rollback()
        logger.error(f"Violación de unicidad al registrar '{signup.username}', transacción revertida: {e}", exc_info=True)
        raise ServiceError(ErrorKind.CONFLICT_DUPLICATE, INSERT_FAILED)
    except Exception as e:
        gateway.rollback()
        logger.error(f"Error durante la transacción de registro, revertida: {e}", exc_info=True)
        raise ServiceError(ErrorKind.PERSISTENCE_UNAVAILABLE, INSERT_FAILED)

    return user_id


def lookup_two_query(gateway: UserGateway, raw_id: Any) -> UserWithAddressesResponse:
    """
    Busca el usuario y luego sus direcciones en dos consultas separadas.

    Son dos viajes a la base de datos en lugar de uno; aceptable solo con poco
    volumen de peticiones.
    """
    user_id = parse_user_id(raw_id)
    if user_id is None:
        raise ServiceError(ErrorKind.NOT_FOUND, USER_NOT_FOUND)

    try:
        user = gateway.fetch_user(user_id)
        addresses = gateway.fetch_addresses(user_id) if user is not None else []
    except Exception as e:
        logger.error(f"Error al consultar el usuario {user_id}: {e}", exc_info=True)
        raise ServiceError(ErrorKind.PERSISTENCE_UNAVAILABLE, FETCH_FAILED)

    if user is None:
        logger.warning(f"Usuario con ID {user_id} no encontrado.")
        raise ServiceError(ErrorKind.NOT_FOUND, USER_NOT_FOUND)

    return UserWithAddressesResponse(
        user=UserResponse.model_validate(dict(user._mapping)),
        addresses=[AddressResponse.model_validate(address) for address in addresses],
    )


def lookup_joined(gateway: UserGateway, raw_id: Any) -> JoinedUserResponse:
    """
    Busca el usuario y su dirección con un único INNER JOIN.

    Devuelve solo la primera fila: un usuario con varias direcciones aparece
    con una sola, y uno sin direcciones se reporta como no encontrado.
    """
    user_id = parse_user_id(raw_id)
    if user_id is None:
        raise ServiceError(ErrorKind.NOT_FOUND, USER_NOT_FOUND)

    try:
        rows = gateway.fetch_user_with_addresses(user_id)
    except Exception as e:
        logger.error(f"Error al consultar el usuario {user_id} con JOIN: {e}", exc_info=True)
        raise ServiceError(ErrorKind.PERSISTENCE_UNAVAILABLE, FETCH_FAILED)

    if not rows:
        logger.warning(f"Sin filas en el JOIN para el usuario con ID {user_id}.")
        raise ServiceError(ErrorKind.NOT_FOUND, USER_NOT_FOUND)

    return JoinedUserResponse(userAndAddresses=UserAddressRow.model_validate(dict(rows[0]._mapping)))
