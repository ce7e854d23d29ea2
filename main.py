from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from emergency_hub.shared import config
from emergency_hub.shared.db import close_db, init_db, ping_db
from emergency_hub.shared.schema import create_tables
from emergency_hub.shared.seed import seed_data
from emergency_hub.shared.response import register_exception_handlers, success_response
from emergency_hub.shared.utils import with_timeout
from emergency_hub.auth.router import router as auth_router
from emergency_hub.emergencies.router import router as emergencies_router
from emergency_hub.emergencies.storage import ping_storage
from emergency_hub.notifications.router import router as notifications_router
from emergency_hub.analytics.router import router as analytics_router
from emergency_hub.map.router import router as map_router
from emergency_hub.shared.errors import OperationTimeout

app = FastAPI(title="Emergency Hub API")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth_router, prefix="/api/auth")
app.include_router(emergencies_router, prefix="/api/emergencies")
app.include_router(notifications_router, prefix="/api/notifications")
app.include_router(analytics_router, prefix="/api/analytics")
app.include_router(map_router, prefix="/api/map")


@app.on_event("startup")
async def startup_event():
    """Initialize database tables and seed demo users on startup"""
    await init_db()
    await create_tables()
    if config.SEED_DEMO_USERS:
        await seed_data()


@app.on_event("shutdown")
async def shutdown_event():
    await close_db()


async def _probe(check) -> bool:
    try:
        return await with_timeout(check(), config.HEALTH_TIMEOUT_SECONDS, "Health probe")
    except OperationTimeout:
        return False


@app.get("/api/health")
async def health():
    """Report whether the document store and blob store are reachable"""
    return success_response({
        "database": await _probe(ping_db),
        "storage": await _probe(ping_storage),
    }, "Health check complete")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
