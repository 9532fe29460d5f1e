import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import get_settings
from .database import init_db, shutdown_db
from .routers.advances import router as advances_router
from .routers.auth import router as auth_router
from .routers.dashboard import router as dashboard_router
from .routers.projects import router as projects_router
from .routers.savings import router as savings_router
from .routers.tickets import router as tickets_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
log = logging.getLogger("gestion")


# Lifespan: la BD se inicializa antes de aceptar requests y se libera al final
@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Creando tablas y usuarios base...")
    init_db()
    log.info("Servidor S&P Gestión listo | Auth: JWT | Storage: %s", settings.storage_dir)
    yield
    log.info("Apagando S&P Gestión...")
    shutdown_db()


app = FastAPI(title="S&P Gestión API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Cuerpo o parámetros mal formados: 400 con mensaje corto
    log.warning("Error de validación en %s - %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Datos inválidos en la solicitud."},
    )


# ==================== ADJUNTOS ====================
# storage/tickets/<archivo>  ->  /storage/tickets/<archivo>
settings.storage_dir.mkdir(parents=True, exist_ok=True)
app.mount("/storage", StaticFiles(directory=str(settings.storage_dir)), name="storage")

# ==================== ROUTERS ====================
app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(advances_router)
app.include_router(tickets_router)
app.include_router(savings_router)
app.include_router(dashboard_router)


@app.get("/")
def root():
    return {"ok": True, "message": "API S&P Gestión OK"}
