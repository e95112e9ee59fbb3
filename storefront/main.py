"""FastAPI application wiring the storefront product API."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from .config import Settings, settings
from .errors import ProductNotFoundError, SearchUnavailableError, StorefrontError
from .models import (
    ProductCreate,
    ProductEnvelope,
    ProductListResponse,
    ProductUpdate,
    SuggestionData,
    SuggestionResponse,
)
from .services import Services, build_services
from .store import serialize_product
from .sync import SyncOperation

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    # ``force=True`` replaces uvicorn's default handlers.
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "elastic_transport"):
        logging.getLogger(name).setLevel(level)
    logger.info("Logging configured at %s", level_name.upper())


def get_services(request: Request) -> Services:
    return request.app.state.services


def require_admin(
    request: Request, x_admin_token: Optional[str] = Header(default=None)
) -> None:
    token = request.app.state.settings.admin_token
    if token and x_admin_token != token:
        raise HTTPException(status_code=401, detail="Admin token required")


def create_app(app_settings: Settings = settings, services: Optional[Services] = None) -> FastAPI:
    app = FastAPI(title="Storefront Product API")
    app.state.settings = app_settings
    app.state.services = services

    @app.on_event("startup")
    async def startup_event() -> None:
        if app.state.services is None:
            app.state.services = await asyncio.to_thread(build_services, app_settings)

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})

    @app.get("/health")
    async def health(svc: Services = Depends(get_services)) -> dict:
        return {
            "status": "ok",
            "searchEngine": "available" if svc.availability.search_engine else "unavailable",
            "cache": "available" if svc.availability.cache else "unavailable",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api/products", response_model=ProductListResponse, response_model_exclude_none=True)
    async def search_products(request: Request, svc: Services = Depends(get_services)) -> ProductListResponse:
        # Repeated keys keep every value; normalization takes the first.
        raw = {key: request.query_params.getlist(key) for key in request.query_params}
        page = await svc.search(raw)
        return page.to_response()

    @app.get("/api/products/suggestions", response_model=SuggestionResponse)
    async def suggestions(
        q: Optional[str] = Query(None, description="Name prefix"),
        svc: Services = Depends(get_services),
    ) -> SuggestionResponse:
        return SuggestionResponse(data=SuggestionData(suggestions=await svc.suggest(q)))

    @app.get("/api/products/categories")
    async def categories(svc: Services = Depends(get_services)) -> dict:
        return {"success": True, "data": {"categories": await svc.facet("categories")}}

    @app.get("/api/products/brands")
    async def brands(svc: Services = Depends(get_services)) -> dict:
        return {"success": True, "data": {"brands": await svc.facet("brands")}}

    @app.get("/api/products/slug/{slug}", response_model=ProductEnvelope)
    async def product_by_slug(slug: str, svc: Services = Depends(get_services)) -> ProductEnvelope:
        product = await svc.store.get_by_slug(slug)
        if not product:
            raise ProductNotFoundError("Product not found")
        return ProductEnvelope(data={"product": serialize_product(product)})

    @app.get("/api/products/{product_id}", response_model=ProductEnvelope)
    async def product_by_id(product_id: str, svc: Services = Depends(get_services)) -> ProductEnvelope:
        product = await svc.store.get(product_id)
        if not product or not product.get("isActive", True):
            raise ProductNotFoundError("Product not found")
        return ProductEnvelope(data={"product": serialize_product(product)})

    @app.post(
        "/api/admin/products",
        status_code=201,
        response_model=ProductEnvelope,
        dependencies=[Depends(require_admin)],
    )
    async def create_product(
        payload: ProductCreate,
        background: BackgroundTasks,
        svc: Services = Depends(get_services),
    ) -> ProductEnvelope:
        product = await svc.store.create(payload.model_dump())
        svc.invalidate_facets()
        background.add_task(svc.index_sync.sync, product, SyncOperation.CREATE)
        return ProductEnvelope(data={"product": serialize_product(product)})

    @app.put(
        "/api/admin/products/{product_id}",
        response_model=ProductEnvelope,
        dependencies=[Depends(require_admin)],
    )
    async def update_product(
        product_id: str,
        payload: ProductUpdate,
        background: BackgroundTasks,
        svc: Services = Depends(get_services),
    ) -> ProductEnvelope:
        product = await svc.store.update(product_id, payload.model_dump(exclude_unset=True))
        if not product:
            raise ProductNotFoundError("Product not found")
        svc.invalidate_facets()
        background.add_task(svc.index_sync.sync, product, SyncOperation.UPDATE)
        return ProductEnvelope(data={"product": serialize_product(product)})

    @app.delete(
        "/api/admin/products/{product_id}",
        response_model=ProductEnvelope,
        dependencies=[Depends(require_admin)],
    )
    async def delete_product(
        product_id: str,
        background: BackgroundTasks,
        svc: Services = Depends(get_services),
    ) -> ProductEnvelope:
        product = await svc.store.deactivate(product_id)
        if not product:
            raise ProductNotFoundError("Product not found")
        svc.invalidate_facets()
        background.add_task(svc.index_sync.sync, product, SyncOperation.DELETE)
        return ProductEnvelope(data={"product": serialize_product(product)})

    @app.post("/api/admin/reindex", dependencies=[Depends(require_admin)])
    async def reindex(svc: Services = Depends(get_services)) -> dict:
        if not svc.index_sync.enabled:
            raise SearchUnavailableError("Search engine unavailable")
        count = await svc.reindex()
        return {"success": True, "data": {"indexed": count}}

    return app


configure_logging(settings.log_level)
app = create_app()
