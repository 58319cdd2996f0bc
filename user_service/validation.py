"""Validación de los campos de registro antes de cualquier escritura."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import ValidationError

from user_service.schemas import SignupRequest

logger = logging.getLogger(__name__)

SIGNUP_FIELDS = ("username", "email", "password", "city", "country", "street", "pincode")


@dataclass
class SignupVerdict:
    """Resultado por campo de la validación de un registro."""
    fields: Dict[str, bool] = field(default_factory=dict)
    request: Optional[SignupRequest] = None

    @property
    def ok(self) -> bool:
        return self.request is not None and all(self.fields.values())

    @property
    def failed_fields(self) -> list:
        return [name for name, passed in self.fields.items() if not passed]


def validate_signup(payload: Any) -> SignupVerdict:
    """
    Evalúa los siete campos del registro.

    Pydantic recoge todos los errores en una sola pasada, así que cada campo
    recibe su veredicto aunque otro ya haya fallado. Un cuerpo que no es un
    objeto JSON invalida todos los campos.
    """
    verdict = SignupVerdict(fields={name: True for name in SIGNUP_FIELDS})

    try:
        verdict.request = SignupRequest.model_validate(payload)
    except ValidationError as e:
        for error in e.errors():
            loc = error.get("loc") or ()
            if loc and loc[0] in verdict.fields:
                verdict.fields[loc[0]] = False
            else:
                # Error a nivel de modelo (p.ej. cuerpo que no es un objeto)
                verdict.fields = {name: False for name in SIGNUP_FIELDS}
        logger.warning(f"Registro rechazado, campos inválidos: {', '.join(verdict.failed_fields)}")

    return verdict
