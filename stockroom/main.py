# stockroom/main.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core import ProductIn, TransactionIn
from .database import Store, create_store
from .errors import InvalidInput, NotFound, PersistenceFailure
from .ledger import Ledger
from .logger import setup_logger
from .models import Product, Transaction
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


def get_ledger(request: Request) -> Ledger:
    return request.app.state.ledger


# ---------------------------
# Product endpoints
# ---------------------------
@router.get("/products", response_model=List[Product])
async def list_products(ledger: Ledger = Depends(get_ledger)):
    return ledger.list_products()


@router.get("/products/{product_id}", response_model=Product)
async def get_product(product_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.get_product(product_id)


@router.post("/products", response_model=Product)
async def create_product(payload: Optional[ProductIn] = None, ledger: Ledger = Depends(get_ledger)):
    return await ledger.create_product(payload or ProductIn())


@router.put("/products/{product_id}", response_model=Product)
async def update_product(
    product_id: str, payload: Optional[ProductIn] = None, ledger: Ledger = Depends(get_ledger)
):
    return await ledger.update_product(product_id, payload or ProductIn())


@router.delete("/products/{product_id}")
async def delete_product(product_id: str, ledger: Ledger = Depends(get_ledger)):
    await ledger.delete_product(product_id)
    return {"success": True}


# ---------------------------
# Transactions and reports
# ---------------------------
@router.post("/transactions", response_model=Product)
async def record_transaction(payload: Optional[TransactionIn] = None, ledger: Ledger = Depends(get_ledger)):
    payload = payload or TransactionIn()
    return await ledger.record_transaction(payload.productId, payload.amount)


@router.get("/low-stock", response_model=List[Product])
async def list_low_stock(ledger: Ledger = Depends(get_ledger)):
    return ledger.list_low_stock()


@router.get("/reports", response_model=List[Transaction])
async def list_transactions(ledger: Ledger = Depends(get_ledger)):
    return ledger.list_transactions()


@router.get("/health")
async def health():
    return {"status": "ok"}


# ---------------------------
# Error mapping
# ---------------------------
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _not_found(request: Request, exc: NotFound):
    return _error(404, exc.message)


async def _invalid_input(request: Request, exc: InvalidInput):
    return _error(400, exc.message)


async def _bad_body(request: Request, exc: RequestValidationError):
    return _error(400, "request body must be a JSON object")


async def _persistence_failure(request: Request, exc: PersistenceFailure):
    logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error(500, "storage error: " + exc.message)


# ---------------------------
# App factory
# ---------------------------
def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logger("stockroom", settings.log_level.upper(), settings.log_file)

    app = FastAPI(title="stockroom (inventory ledger)")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.ledger = Ledger(store if store is not None else create_store(settings))

    app.add_exception_handler(NotFound, _not_found)
    app.add_exception_handler(InvalidInput, _invalid_input)
    app.add_exception_handler(RequestValidationError, _bad_body)
    app.add_exception_handler(PersistenceFailure, _persistence_failure)
    app.include_router(router)
    return app


app = create_app()


def run():
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
