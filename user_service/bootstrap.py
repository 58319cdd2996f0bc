"""Creación idempotente de las tablas 'users' y 'addresses'."""

import logging
import sys
from typing import Optional

from sqlalchemy import exc

from user_service import config, models  # noqa: F401  (registra los modelos en Base.metadata)
from user_service.db import Base, Database

logger = logging.getLogger(__name__)


def create_tables(database: Database) -> bool:
    """
    Crea las tablas si no existen (CREATE TABLE IF NOT EXISTS).
    Devuelve False si no se pudieron crear; el error queda registrado.
    """
    if database.engine is None:
        logger.error("No hay motor de base de datos configurado; no se crean tablas.")
        return False

    try:
        Base.metadata.create_all(bind=database.engine)
        logger.info("Tablas 'users' y 'addresses' verificadas/creadas.")
        return True
    except exc.SQLAlchemyError as e:
        logger.error(f"Error al crear las tablas: {e}", exc_info=True)
        return False


def main(url: Optional[str] = None) -> int:
    config.configure_logging()
    database = Database.from_url(url)
    try:
        return 0 if create_tables(database) else 1
    finally:
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
