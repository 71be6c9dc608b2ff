import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from bson.errors import BSONError
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

from catalog import CatalogService
from database import COLLECTIONS, create_client, ensure_indexes, ping
from errors import NotFoundError, TradeHubError
from ledger import InventoryLedger
from logging_config import setup_logging
from registry import RegistryService
from schemas import ExportIn, ImportIn, ProductIn, UserIn
from settings import Settings

logger = logging.getLogger("tradehub.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_file = setup_logging()
    logger.info("Trade Hub starting, log file: %s", log_file)
    client = create_client()
    db = client[Settings.DATABASE_NAME]
    try:
        ping(db)
        ensure_indexes(db)
    except PyMongoError:
        logger.critical("Could not connect to MongoDB at startup", exc_info=True)
        client.close()
        raise
    logger.info("Connected to MongoDB database %s", Settings.DATABASE_NAME)
    app.state.db = db
    yield
    client.close()
    logger.info("Trade Hub shutting down")


app = FastAPI(title="Food & Beverage Trade Hub API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------- Dependencies ---------------------------------
def get_db(request: Request) -> Database:
    return request.app.state.db


def get_catalog(db: Database = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_ledger(db: Database = Depends(get_db)) -> InventoryLedger:
    return InventoryLedger(db)


def get_registry(db: Database = Depends(get_db)) -> RegistryService:
    return RegistryService(db)


def _body(payload) -> Dict[str, Any]:
    if payload is None:
        return {}
    data = payload.model_dump(exclude_unset=True)
    data.update(payload.model_extra or {})
    return data


# ------------------------------ Errors -------------------------------------
@app.exception_handler(TradeHubError)
async def trade_hub_error_handler(request: Request, exc: TradeHubError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected (%d): %s", request.method, request.url.path,
                       exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.warning("%s %s bad request: %s", request.method, request.url.path, detail)
    return JSONResponse(status_code=400, content={"message": detail})


@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError):
    logger.error("%s %s store failure", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Server error"})


@app.exception_handler(BSONError)
@app.exception_handler(OverflowError)
async def encoding_error_handler(request: Request, exc: Exception):
    # Values pydantic accepts but BSON cannot encode, e.g. ints past 64 bits
    logger.error("%s %s could not encode document: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"message": "Server error"})


# ---------------------------- Root & Health --------------------------------
@app.get("/", response_class=PlainTextResponse)
def read_root():
    return "Food & Beverage Trade Hub server is running"


@app.get("/test")
def test_database(db: Database = Depends(get_db)):
    response = {
        "backend": "✅ Running",
        "database": "✅ Available",
        "database_name": getattr(db, "name", None),
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        response["collections"] = [c for c in db.list_collection_names() if c in COLLECTIONS]
        response["connection_status"] = "Connected"
        response["database"] = "✅ Connected & Working"
    except PyMongoError as e:
        response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
    return response


# ------------------------------- Users -------------------------------------
@app.post("/users")
def create_user(payload: Optional[UserIn] = None, registry: RegistryService = Depends(get_registry)):
    return registry.register_user(_body(payload))


@app.get("/users")
def list_users(registry: RegistryService = Depends(get_registry)) -> List[Dict[str, Any]]:
    return registry.list_users()


# ------------------------------ Products -----------------------------------
@app.get("/products")
def list_products(catalog: CatalogService = Depends(get_catalog)):
    return catalog.list_products()


@app.get("/products/latest")
def latest_products(catalog: CatalogService = Depends(get_catalog)):
    return catalog.latest_products()


@app.get("/products/{product_id}")
def get_product(product_id: str, catalog: CatalogService = Depends(get_catalog)):
    return catalog.get_product(product_id)


@app.post("/products")
def create_product(payload: Optional[ProductIn] = None, catalog: CatalogService = Depends(get_catalog)):
    return catalog.create_product(_body(payload))


# ------------------------------ Exports ------------------------------------
@app.get("/exports")
def list_exports(userEmail: Optional[str] = None, catalog: CatalogService = Depends(get_catalog)):
    return catalog.list_exports(userEmail)


@app.post("/exports")
def create_export(payload: Optional[ExportIn] = None, catalog: CatalogService = Depends(get_catalog)):
    return catalog.create_export(_body(payload))


@app.put("/exports/{export_id}")
def update_export(export_id: str, payload: Optional[ExportIn] = None,
                  catalog: CatalogService = Depends(get_catalog)):
    return catalog.update_export(export_id, _body(payload))


@app.delete("/exports/{export_id}")
def delete_export(export_id: str, catalog: CatalogService = Depends(get_catalog)):
    return catalog.delete_export(export_id)


# ------------------------------ Imports ------------------------------------
@app.get("/imports")
def list_imports(userEmail: Optional[str] = None, ledger: InventoryLedger = Depends(get_ledger)):
    return ledger.list_imports(userEmail)


@app.post("/imports")
def create_import(payload: Optional[ImportIn] = None, ledger: InventoryLedger = Depends(get_ledger)):
    body = payload or ImportIn()
    return ledger.create_import(body.productId, body.importedQuantity, body.userEmail)


@app.delete("/imports/{import_id}")
def delete_import(import_id: str, ledger: InventoryLedger = Depends(get_ledger)):
    if not ledger.delete_import(import_id):
        raise NotFoundError("Import not found")
    return {"deleted": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=Settings.HOST, port=Settings.PORT)
