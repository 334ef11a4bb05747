# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import Base, engine
import models  # noqa: F401  (register tables on Base.metadata)
from routers.v1 import api_v1
from services.errors import OrderEngineError

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------- Bootstrap ----------
@asynccontextmanager
async def lifespan(app: FastAPI):
    # dev convenience; alembic owns the schema in deployments
    Base.metadata.create_all(bind=engine)
    logger.info("printshop API started currency=%s", settings.currency)
    yield


app = FastAPI(title="Printshop Order API", version="1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrderEngineError)
async def order_engine_error_handler(request: Request, exc: OrderEngineError):
    logger.info(
        "rejected %s %s: %s [%s]",
        request.method, request.url.path, exc.message, exc.invariant,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/")
def home():
    return {"status": "ok", "api": "/api/v1"}


app.include_router(api_v1, prefix="/api/v1")
