from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from phasebudget.core.config import settings
from phasebudget.core.database import create_tables
from phasebudget.core.logging_config import configure_logging
from phasebudget.api.v1.budget import router as budget_router
from phasebudget.api.v1.attendance import router as attendance_router
from phasebudget.api.v1.wage_configs import router as wage_configs_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    # Tabellen beim Start anlegen (SQLite / lokale Entwicklung)
    await create_tables()
    yield


app = FastAPI(
    title="Phase Budget API",
    description="Labour cost per project phase from attendance and wage configuration",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_PREFIX = "/api/v1"

app.include_router(budget_router, prefix=API_PREFIX)
app.include_router(attendance_router, prefix=API_PREFIX)
app.include_router(wage_configs_router, prefix=API_PREFIX)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "Phase Budget API", "version": "1.0.0"}
