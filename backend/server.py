from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from datetime import datetime, timezone
import uuid
from contextlib import asynccontextmanager
from database import database
from errors import AliceError, EntitlementRequired
from routes import admin, billing, bookings, business, faqs, insights, leads, staff
from services.app_services import reset_services
from services.approval_workflow import DEV_ADMIN_KEY
from services.notification_dispatcher import notification_dispatcher

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Alice EntrepreBot API")
    database.connect()
    reset_services(notification_dispatcher)

    admin_key = (os.getenv("ADMIN_KEY") or "").strip()
    if not admin_key or admin_key == DEV_ADMIN_KEY:
        logger.warning("ADMIN_KEY is not set or uses the dev default. Approval links are not secret.")
    if not (os.getenv("ADMIN_EMAIL") or "").strip():
        logger.warning("ADMIN_EMAIL is not set. EFT claim notifications will be dropped.")

    yield

    # Shutdown
    await notification_dispatcher.drain(timeout=10)
    database.close()
    logger.info("Alice EntrepreBot API stopped")


app = FastAPI(
    title="Alice EntrepreBot API",
    description="Bookings, leads, FAQs, staff attendance and EFT-approved packages for SMEs",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(business.router)
app.include_router(bookings.router)
app.include_router(leads.router)
app.include_router(faqs.router)
app.include_router(staff.router)
app.include_router(insights.router)  # Basic-package gated
app.include_router(billing.router)  # Packages + manual EFT
app.include_router(admin.router)  # Operator approve/deny links

# Root endpoint
@app.get("/api")
async def root():
    return {
        "ok": True,
        "service": "Alice API",
        "version": "1.0.0",
        "time": datetime.now(timezone.utc).isoformat(),
    }

# Health check
@app.get("/api/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": os.getenv("ENVIRONMENT", "development"),
        "time": datetime.now(timezone.utc).isoformat(),
    }

# Paywall: stable contract {error, message, packages}
@app.exception_handler(EntitlementRequired)
async def entitlement_required_handler(request: Request, exc: EntitlementRequired):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())

@app.exception_handler(AliceError)
async def alice_error_handler(request: Request, exc: AliceError):
    if exc.status_code >= 500:
        logger.error("Request failed path=%s: %s", request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())

# Validation error handler: log request_id + errors (loc path)
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = str(uuid.uuid4())
    errors = exc.errors()
    logger.warning(
        "Request validation failed request_id=%s path=%s errors=%s",
        request_id,
        request.url.path,
        [(e.get("loc"), e.get("msg"), e.get("type")) for e in errors],
    )
    return JSONResponse(
        status_code=422,
        content={"detail": [{"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")} for e in errors], "request_id": request_id},
    )

# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "server:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8080")),
        reload=os.getenv("ENVIRONMENT") == "development"
    )
