import logging
from contextlib import asynccontextmanager
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.adapters.payment_gateway import PaymentGateway, build_gateway
from storefront.api.health import router as health_router
from storefront.api.routes_cart import router as cart_router
from storefront.api.routes_checkout import router as checkout_router
from storefront.api.routes_inventory import router as inventory_router
from storefront.api.routes_order import router as order_router
from storefront.config import Settings, settings as default_settings
from storefront.repositories.durable_store import DurableStore, MemoryDurableStore
from storefront.services.cart_store import CartStore
from storefront.services.checkout import CheckoutOrchestrator
from storefront.services.line_items import LineItemBuilder
from storefront.services.reservation_ledger import InventoryReservationLedger

log = logging.getLogger("storefront")


def build_store(settings: Settings) -> DurableStore:
    backend = (settings.STORE_BACKEND or "sql").lower()
    if backend == "memory":
        return MemoryDurableStore()
    if backend == "file":
        from storefront.repositories.file_store import FileDurableStore

        return FileDurableStore(settings.STORE_DIR)
    if backend == "sql":
        from storefront.db import SessionLocal, engine, init_db, make_engine, make_session_factory
        from storefront.repositories.sql_store import SqlDurableStore

        if settings.DATABASE_URL == engine.url.render_as_string(hide_password=False):
            bind, factory = engine, SessionLocal
        else:
            bind = make_engine(settings.DATABASE_URL)
            factory = make_session_factory(bind)
        init_db(bind)
        return SqlDurableStore(factory)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND!r}")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DurableStore] = None,
    gateway: Optional[PaymentGateway] = None,
) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # startup: one store, one cart, one ledger per process
        app.state.settings = settings
        app.state.store = store or build_store(settings)
        app.state.cart = CartStore(app.state.store, key=settings.CART_STORAGE_KEY)
        app.state.ledger = InventoryReservationLedger(
            app.state.store,
            key=settings.RESERVATION_STORAGE_KEY,
            ttl_seconds=settings.RESERVATION_TTL_SECONDS,
        )
        app.state.orchestrator = CheckoutOrchestrator(
            gateway or build_gateway(settings), LineItemBuilder(settings.SITE_URL)
        )
        app.state.cart.hydrate()

        # polling fallback for stores that can't push change notifications
        scheduler = AsyncIOScheduler()

        async def poll_job():
            changed = app.state.store.poll()
            if changed:
                log.debug("external writes detected for %s", changed)

        if settings.STORE_POLL_INTERVAL_SECONDS > 0:
            scheduler.add_job(
                poll_job, "interval", seconds=settings.STORE_POLL_INTERVAL_SECONDS, id="poll_store"
            )
            scheduler.start()

        try:
            yield
        finally:
            if scheduler.running:
                scheduler.shutdown(wait=False)
            app.state.cart.close()

    app = FastAPI(title="Storefront - Cart & Checkout", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.FRONTEND_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, prefix="/api", tags=["health"])

    app.include_router(cart_router, tags=["cart"])

    app.include_router(checkout_router, tags=["checkout"])

    app.include_router(inventory_router, tags=["inventory"])

    app.include_router(order_router, prefix="/api/orders", tags=["orders"])

    return app


logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = create_app()
