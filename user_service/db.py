"""Configuración de la conexión a la base de datos usando SQLAlchemy."""

import logging
from typing import Optional

from fastapi import Request, status
from sqlalchemy import create_engine, event, exc, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from user_service import config
from user_service.errors import ErrorKind, ServiceError

logger = logging.getLogger(__name__)

# Clase base para los modelos declarativos (User, Address)
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite no aplica ON DELETE CASCADE sin este pragma
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Recurso de base de datos inyectable: motor (con su pool) y fábrica de sesiones.
    La aplicación recibe una instancia en lugar de usar un pool global.
    """

    def __init__(self, engine: Optional[Engine]):
        self.engine = engine
        # Cada petición web usará su propia sesión
        self.SessionLocal = (
            sessionmaker(autocommit=False, autoflush=False, bind=engine) if engine is not None else None
        )
        if engine is not None and engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    @classmethod
    def from_url(cls, url: Optional[str] = None, ssl_no_verify: Optional[bool] = None, **engine_kwargs) -> "Database":
        """Crea el recurso a partir de una URL (por defecto, DATABASE_URL)."""
        url = url or config.DATABASE_URL
        if ssl_no_verify is None:
            ssl_no_verify = config.DB_SSL_NO_VERIFY

        if not url:
            logger.error("Falta la variable de entorno DATABASE_URL para la base de datos.")
            return cls(None)

        connect_args = dict(engine_kwargs.pop("connect_args", {}))
        if ssl_no_verify and url.startswith("postgresql"):
            # TLS sin verificar el certificado del servidor
            logger.warning("DB_SSL_NO_VERIFY activo: no se verificará el certificado de la base de datos.")
            connect_args["sslmode"] = "require"

        # pool_pre_ping=True ayuda a manejar conexiones inactivas en el pool
        engine_kwargs.setdefault("pool_pre_ping", True)
        try:
            engine = create_engine(url, connect_args=connect_args, **engine_kwargs)
        except (exc.SQLAlchemyError, ImportError) as e:
            logger.error(f"Error al crear el motor de base de datos: {e}", exc_info=True)
            engine = None
        return cls(engine)

    @property
    def available(self) -> bool:
        return self.SessionLocal is not None

    def session(self) -> Session:
        if self.SessionLocal is None:
            raise RuntimeError("La fábrica de sesiones de base de datos no está inicializada.")
        return self.SessionLocal()

    def ping(self) -> bool:
        """Comprueba que la base de datos responde a un SELECT 1."""
        if self.engine is None:
            return False
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except exc.SQLAlchemyError as e:
            logger.error(f"Error al conectar con la base de datos: {e}")
            return False

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()


# --- Función de Dependencia para FastAPI ---
def get_db(request: Request):
    """
    Generador de dependencia de FastAPI para obtener una sesión de base de datos.
    Asegura que la sesión se cierre correctamente después de cada petición.
    """
    database: Database = request.app.state.database
    if not database.available:
        logger.error("La fábrica de sesiones de base de datos no está inicializada.")
        raise ServiceError(
            ErrorKind.PERSISTENCE_UNAVAILABLE,
            "Database Service Unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    db = database.session()
    try:
        yield db
    finally:
        db.close()
