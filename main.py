import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, settings as default_settings
from database import ADDED_FOODS, ALL_FOODS, ORDERS, TOP_FOODS, Store, create_client, ping
from logging_config import log_unhandled, setup_logging
from schemas import Food

logger = logging.getLogger("foodify")


def get_store(request: Request) -> Store:
    return request.app.state.store


def to_object_id(id_str: str, message: str) -> ObjectId:
    if not ObjectId.is_valid(id_str):
        raise HTTPException(status_code=400, detail=message)
    return ObjectId(id_str)


def merge_foods(admin_foods: List[dict], user_foods: List[dict]) -> List[dict]:
    """Admin-curated foods first, then user-added ones, each in store order."""
    return [*admin_foods, *user_foods]


def server_error(message: str = "Server error") -> JSONResponse:
    return JSONResponse(status_code=500, content={"message": message})


@asynccontextmanager
async def lifespan(app: FastAPI):
    asyncio.get_running_loop().set_exception_handler(log_unhandled)

    client = None
    if app.state.store is None:
        try:
            client = create_client(app.state.settings)
            await ping(client)
            logger.info("Pinged MongoDB successfully")
        except Exception:
            logger.exception("MongoDB connection error")
        db = client[app.state.settings.database_name] if client is not None else None
        app.state.store = Store(db)

    yield

    if client is not None:
        await client.close()


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.log_level)

    app = FastAPI(title="Foodify API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": "Invalid request body"})

    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "🍽️ Foodify server is ready"

    # ===================== Foods =====================

    @app.get("/top-foods")
    async def top_foods(store: Store = Depends(get_store)):
        try:
            return await store.get_documents(TOP_FOODS, sort=[("purchaseCount", -1)], limit=6)
        except Exception:
            logger.exception("Failed to fetch top foods")
            return server_error()

    @app.get("/api/all-foods")
    async def all_foods(store: Store = Depends(get_store)):
        try:
            admin_foods, user_foods = await asyncio.gather(
                store.get_documents(ALL_FOODS),
                store.get_documents(ADDED_FOODS),
            )
        except Exception:
            logger.exception("Error fetching combined foods")
            return server_error()
        logger.info("Admin: %d | User: %d", len(admin_foods), len(user_foods))
        return merge_foods(admin_foods, user_foods)

    @app.get("/api/all-foods/{food_id}")
    async def get_admin_food(food_id: str, store: Store = Depends(get_store)):
        oid = to_object_id(food_id, "Invalid ID format")
        try:
            food = await store.get_document_by_id(ALL_FOODS, oid)
        except Exception:
            logger.exception("Error fetching food %s", food_id)
            return server_error()
        if not food:
            raise HTTPException(404, "Food not found")
        return food

    @app.get("/api/foods/{food_id}")
    async def get_user_food(food_id: str, store: Store = Depends(get_store)):
        oid = to_object_id(food_id, "Invalid food ID")
        try:
            food = await store.get_document_by_id(ADDED_FOODS, oid)
        except Exception:
            logger.exception("Error fetching added food %s", food_id)
            return server_error()
        if not food:
            raise HTTPException(404, "Food not found")
        return food

    @app.get("/api/my-foods")
    async def my_foods(email: Optional[str] = None, store: Store = Depends(get_store)):
        if not email:
            raise HTTPException(400, "Missing user email")
        try:
            return await store.get_documents(ADDED_FOODS, {"addedBy.email": email})
        except Exception:
            logger.exception("Error fetching foods for %s", email)
            return server_error()

    @app.post("/api/foods", status_code=201)
    async def add_food(payload: Dict[str, Any] = Body(...), store: Store = Depends(get_store)):
        logger.debug("Received food data: %s", payload)
        payload.pop("createdAt", None)
        try:
            Food.model_validate(payload)
        except ValidationError:
            raise HTTPException(400, "Missing required food data")

        document = dict(payload)
        document["createdAt"] = datetime.now(timezone.utc)
        try:
            inserted_id = await store.create_document(ADDED_FOODS, document)
        except Exception:
            logger.exception("Error adding food")
            return server_error("Failed to add food item")
        logger.debug("Inserted food %s", inserted_id)
        return {"insertedId": inserted_id}

    @app.put("/api/update-food/{food_id}")
    async def update_food(
        food_id: str,
        email: Optional[str] = None,
        payload: Dict[str, Any] = Body(...),
        store: Store = Depends(get_store),
    ):
        oid = to_object_id(food_id, "Invalid food ID")
        # _id is immutable and createdAt is server-owned
        payload.pop("_id", None)
        payload.pop("createdAt", None)

        try:
            existing = await store.get_document_by_id(ADDED_FOODS, oid)
        except Exception:
            logger.exception("Error loading food %s for update", food_id)
            return server_error()
        if not existing:
            raise HTTPException(404, "Food not found")

        added_by = existing.get("addedBy")
        owner = added_by.get("email") if isinstance(added_by, dict) else None
        if not email or owner != email:
            raise HTTPException(403, "Not authorized to update this food")

        modified_count = 0
        if payload:
            try:
                modified_count = await store.update_document(ADDED_FOODS, oid, payload)
            except Exception:
                logger.exception("Error updating food %s", food_id)
                return server_error()
        return {"message": "Food updated successfully", "modifiedCount": modified_count}

    # ===================== Orders =====================

    @app.post("/api/purchase")
    async def purchase(payload: Dict[str, Any] = Body(...), store: Store = Depends(get_store)):
        try:
            inserted_id = await store.create_document(ORDERS, dict(payload))
        except Exception:
            logger.exception("Failed to save purchase")
            return server_error("Purchase failed")
        return {"acknowledged": True, "insertedId": inserted_id}

    @app.get("/api/my-orders")
    async def my_orders(email: Optional[str] = None, store: Store = Depends(get_store)):
        if not email:
            raise HTTPException(400, "Missing buyer email")
        try:
            return await store.get_documents(ORDERS, {"buyerEmail": email})
        except Exception:
            logger.exception("Error fetching orders for %s", email)
            return server_error()

    @app.delete("/api/my-orders/{order_id}")
    async def delete_order(order_id: str, store: Store = Depends(get_store)):
        oid = to_object_id(order_id, "Invalid order ID")
        try:
            deleted_count = await store.delete_document(ORDERS, oid)
        except Exception:
            logger.exception("Error deleting order %s", order_id)
            return server_error("Delete failed")
        return {"acknowledged": True, "deletedCount": deleted_count}


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logger.info("Server running on port %d", default_settings.port)
    uvicorn.run(app, host="0.0.0.0", port=default_settings.port)
