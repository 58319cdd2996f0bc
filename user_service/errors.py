"""Taxonomía de errores del servicio y su traducción a códigos HTTP."""

import enum
from typing import Optional

from fastapi import status

from user_service.config import VALIDATION_ERROR_STATUS


class ErrorKind(str, enum.Enum):
    """Clases de fallo que un flujo puede reportar al cliente."""
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"
    CONFLICT_DUPLICATE = "conflict_duplicate"
    PERSISTENCE_UNAVAILABLE = "persistence_unavailable"


# Los duplicados siguen respondiendo 500: el cliente distingue el caso por "error"
STATUS_BY_KIND = {
    ErrorKind.VALIDATION_FAILED: VALIDATION_ERROR_STATUS,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT_DUPLICATE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.PERSISTENCE_UNAVAILABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ServiceError(Exception):
    """
    Error esperado de un flujo de negocio.
    El mensaje es seguro para el cliente; el detalle interno solo va al log.
    """

    def __init__(self, kind: ErrorKind, message: str, status_code: Optional[int] = None):
        self.kind = kind
        self.message = message
        # Permite afinar el código sin cambiar la clase de error (p.ej. 503)
        self._status_code = status_code
        super().__init__(message)

    @property
    def status_code(self) -> int:
        if self._status_code is not None:
            return self._status_code
        return STATUS_BY_KIND[self.kind]

    def to_body(self) -> dict:
        return {"message": self.message, "error": self.kind.value}
