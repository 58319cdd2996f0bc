import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest
from sqlalchemy.orm import Session

# Importaciones locales
from user_service import config, schemas
from user_service.db import Database, get_db
from user_service.errors import ServiceError
from user_service.gateway import UserGateway
from user_service.workflows import lookup_joined, lookup_two_query, register_user

# Configura logger
config.configure_logging()
logger = logging.getLogger(__name__)

SIGNUP_SUCCESS_MESSAGE = "Data Inserted Successfully"


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Construye la aplicación FastAPI sobre un recurso de base de datos inyectado.
    Sin argumento se usa DATABASE_URL.
    """
    if database is None:
        database = Database.from_url()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Libera las conexiones del pool al apagar
        app.state.database.dispose()

    app = FastAPI(
        title="User Service",
        description="Registers users with an initial address and looks them up.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.database = database

    # --- Métricas Prometheus ---
    registry = CollectorRegistry()
    request_count = Counter(
        "user_requests_total",
        "Total requests processed by User Service",
        ["method", "endpoint", "status_code"],
        registry=registry,
    )
    request_latency = Histogram(
        "user_request_latency_seconds",
        "Request latency in seconds for User Service",
        ["endpoint"],
        registry=registry,
    )
    signup_count = Counter(
        "user_signups_total",
        "Signup attempts by outcome",
        ["outcome"],
        registry=registry,
    )

    # --- Middleware para Métricas ---
    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        start_time = time.time()
        response = None
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as exc:
            logger.error(f"Unhandled exception during request processing: {exc}", exc_info=True)
            response = JSONResponse({"message": "Internal Server Error"}, status_code=500)
        finally:
            latency = time.time() - start_time
            endpoint = request.url.path
            request_latency.labels(endpoint=endpoint).observe(latency)
            request_count.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=getattr(response, "status_code", status_code),
            ).inc()

        return response

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    # --- Endpoints de Salud y Métricas ---
    @app.get("/metrics", tags=["Monitoring"])
    def metrics():
        """Exposes application metrics for Prometheus."""
        return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health", tags=["Monitoring"])
    def health_check(request: Request):
        """Performs a basic health check of the service and its database."""
        if not request.app.state.database.ping():
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "error", "service": "user_service", "database": "error"},
            )
        return {"status": "ok", "service": "user_service", "database": "ok"}

    # --- Endpoints de API ---

    @app.post("/signup", response_model=schemas.SignupResponse, status_code=status.HTTP_201_CREATED, tags=["Users"])
    async def signup(request: Request, db: Session = Depends(get_db)):
        """
        Registers a user together with an initial address in one transaction.
        Invalid fields are rejected before anything is written.
        """
        try:
            payload = await request.json()
        except ValueError:
            # Cuerpo vacío o JSON mal formado: todos los campos fallan la validación
            payload = None

        try:
            # bcrypt y la sesión son bloqueantes: fuera del event loop
            user_id = await run_in_threadpool(register_user, UserGateway(db), payload)
        except ServiceError as e:
            signup_count.labels(outcome=e.kind.value).inc()
            raise

        signup_count.labels(outcome="created").inc()
        return {"message": SIGNUP_SUCCESS_MESSAGE, "id": user_id}

    @app.get("/user/badapproach", response_model=schemas.UserWithAddressesResponse, tags=["Users"])
    def get_user_two_queries(user_id: Optional[str] = Query(None, alias="id"), db: Session = Depends(get_db)):
        """
        Returns a user and all of their addresses using two separate queries.
        """
        return lookup_two_query(UserGateway(db), user_id)

    @app.get("/user/goodapproach", response_model=schemas.JoinedUserResponse, tags=["Users"])
    def get_user_joined(user_id: Optional[str] = Query(None, alias="id"), db: Session = Depends(get_db)):
        """
        Returns the user joined with their first address in a single query.
        Users without addresses are reported as not found.
        """
        return lookup_joined(UserGateway(db), user_id)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
