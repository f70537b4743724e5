from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from barber_dashboard.core.config import settings
from barber_dashboard.core.errors import DashboardError, StoreError
from barber_dashboard.api import analytics, bookings, catalog, staff
from barber_dashboard.core.logger import setup_logging, logger
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Starting Barbershop Dashboard Backend")
    yield
    # Shutdown
    logger.info("🛑 Shutting down backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    if isinstance(exc, StoreError):
        logger.error(f"❌ Store failure on {request.url.path}: {exc.cause or exc.message}")
    else:
        logger.info(f"⚠️ {type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "detail": type(exc).__name__}
    )

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"🔥 UNHANDLED ERROR: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "detail": "An unexpected error occurred. Please contact support."}
    )

# Include routers
app.include_router(bookings.router, prefix=settings.API_V1_STR, tags=["Bookings"])
app.include_router(analytics.router, prefix=settings.API_V1_STR, tags=["Analytics"])
app.include_router(staff.router, prefix=settings.API_V1_STR, tags=["Staff"])
app.include_router(catalog.router, prefix=settings.API_V1_STR, tags=["Catalog"])

@app.get("/")
async def health_check():
    return {'status': 'active', 'time': datetime.now().isoformat()}

@app.get("/health")
async def health_check_std():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("barber_dashboard.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
