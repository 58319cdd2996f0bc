"""Modelos Pydantic (schemas) para validación de datos de entrada/salida del Servicio de Usuarios."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# Letras ASCII, dígitos y espacios; entre 2 y 20 caracteres
USERNAME_PATTERN = r"^[a-zA-Z0-9 ]{2,20}$"

# --- Schemas de Registro ---

class SignupRequest(BaseModel):
    """Schema con los siete campos aceptados por /signup."""
    username: str = Field(..., pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str
    city: str
    country: str
    street: str
    pincode: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def reject_display_name(cls, value):
        # EmailStr acepta "Nombre <correo>" y se queda solo con el correo
        if isinstance(value, str) and ("<" in value or ">" in value):
            raise ValueError("email must be a bare address")
        return value

    @field_validator("password")
    @classmethod
    def reject_nul_byte(cls, value: str) -> str:
        # bcrypt no admite el byte NUL en la contraseña
        if "\x00" in value:
            raise ValueError("password must not contain NUL characters")
        return value


class SignupResponse(BaseModel):
    """Schema devuelto tras un registro exitoso."""
    message: str
    id: int


# --- Schemas de Consulta ---

class UserResponse(BaseModel):
    """Datos públicos del usuario (excluye la contraseña)."""
    id: int
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class AddressResponse(BaseModel):
    id: int
    user_id: int
    city: str
    country: str
    street: str
    pincode: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserWithAddressesResponse(BaseModel):
    """Respuesta de la consulta en dos pasos: usuario y todas sus direcciones."""
    user: UserResponse
    addresses: List[AddressResponse]


class UserAddressRow(BaseModel):
    """Una fila del JOIN entre 'users' y 'addresses'."""
    id: int
    username: str
    email: str
    city: str
    country: str
    street: str
    pincode: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class JoinedUserResponse(BaseModel):
    userAndAddresses: UserAddressRow
