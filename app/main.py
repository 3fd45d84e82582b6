from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.errors import payment_error_handler
from app.api.v1.api import api_router
from app.core.config import settings
from app.core.log_config import configure_logging
from app.db.mongo import connect_to_mongo, disconnect_from_mongo, get_db
from app.repositories.mongo_store import MongoRecordStore
from app.services.balance_cache import BalanceCache
from app.services.balance_service import BalanceService
from app.services.payment_service import PaymentService
from app.utils.payment_validation import PaymentError


def build_services(app: FastAPI, store) -> None:
    """Wire the engine once per process; handlers reach it through app.state."""
    cache = BalanceCache()
    app.state.balance_cache = cache
    app.state.balance_service = BalanceService(store, cache)
    app.state.payment_service = PaymentService(store, cache)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await connect_to_mongo()
    build_services(app, MongoRecordStore(get_db()))
    yield
    await disconnect_from_mongo()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

app.add_exception_handler(PaymentError, payment_error_handler)

@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}

app.include_router(api_router, prefix=settings.API_V1_STR)
