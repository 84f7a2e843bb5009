# FastAPI Server for the Gig Marketplace
# App wiring: logging, CORS, error envelopes and the /api routers

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import os
from dotenv import load_dotenv

from config.app_config import LOG_LEVEL
from core.exceptions import MarketplaceError, GatewayError
from database.config import init_db, get_db_context
from database.models import User, UserRole
from auth.utils import get_password_hash
from routers import auth_router, gigs_router, orders_router, payments_router, reviews_router

load_dotenv()

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Gig Marketplace API",
    description="Freelancer marketplace: gigs, orders, escrow payments and reviews",
    version="1.0.0"
)


@app.on_event("startup")
def startup_event():
    init_db()

    # Seed an admin account when credentials are configured
    admin_email = os.getenv("ADMIN_USER")
    admin_pass = os.getenv("ADMIN_PASS")
    if not admin_email or not admin_pass:
        return

    try:
        with get_db_context() as db:
            if not db.query(User).filter(User.email == admin_email).first():
                db.add(User(
                    email=admin_email,
                    password_hash=get_password_hash(admin_pass),
                    name="Admin",
                    role=UserRole.ADMIN,
                    is_verified=True,
                ))
                logger.info(f"Seeded admin user {admin_email}")
    except Exception:
        logger.exception("Admin seeding failed")


# CORS Setup - Allow all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Required when using "*"
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# ERROR ENVELOPES
# ============================================================================
# Every error is rendered as {"message": ...}

@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    if isinstance(exc, GatewayError):
        logger.error(f"Gateway failure on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": "Internal server error"},
        )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


# ============================================================================
# ROUTERS
# ============================================================================

app.include_router(auth_router, prefix="/api")
app.include_router(gigs_router, prefix="/api")
app.include_router(orders_router, prefix="/api")
app.include_router(payments_router, prefix="/api")
app.include_router(reviews_router, prefix="/api")


# Health Check
@app.get("/")
def root():
    return {
        "message": "Gig Marketplace API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
