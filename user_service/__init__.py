"""Servicio de registro de usuarios con dirección inicial."""

__version__ = "1.0.0"
