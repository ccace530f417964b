# minty/main.py
import uvicorn
import os
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.openapi.utils import get_openapi
from minty.core.config import settings
from minty.core.database import engine, Base
from minty.core.auth import (
    fastapi_users,
    auth_backend,
    UserRead,
    UserCreate,
)
from minty.api.v1.routes import (
    auth,
    budgets,
    categories,
    chatbot,
    dashboard,
    export,
    notification,
    notification_settings,
    profile,
    transactions,
)
from minty.utils.notifications import NotificationService
from minty.utils.scheduler import PeriodicChecks

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# Create all tables on startup (Alembic manages the schema in deployed environments)
async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    openapi_tags=[
        {"name": "Authentication", "description": "Registration, login and logout"},
        {"name": "User Management", "description": "Account and profile preferences"},
        {"name": "Notifications", "description": "In-app notifications and the real-time change feed"},
    ],
)

# One notification service for the whole application, shared through app.state
app.state.notification_service = NotificationService()
app.state.periodic_checks = PeriodicChecks(app.state.notification_service)

def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "OAuth2PasswordBearer": {
            "type": "oauth2",
            "flows": {
                "password": {
                    "tokenUrl": "/api/v1/auth/jwt/login",
                    "scopes": {}
                }
            }
        },
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer"
        }
    }

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi

# CORS Configuration
origins = [
    settings.FRONTEND_URL,
    "http://localhost:3000",
    "http://localhost:3001",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Ledger-Status"],
)

# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for better error responses"""
    if isinstance(exc, HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail}
        )

    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

# ------------------------------------------------------------
# AUTHENTICATION ROUTES
# ------------------------------------------------------------

# Include this BEFORE the default FastAPI Users router to handle the logout endpoint
app.include_router(
    auth.router,
    prefix="/api/v1/auth",
    tags=["Authentication"],
)

# JWT Login
app.include_router(
    fastapi_users.get_auth_router(auth_backend),
    prefix="/api/v1/auth/jwt",
    tags=["Authentication"],
)

# Registration
app.include_router(
    fastapi_users.get_register_router(UserRead, UserCreate),
    prefix="/api/v1/auth",
    tags=["Authentication"],
)

# ------------------------------------------------------------
# ROOT ENDPOINT
# ------------------------------------------------------------
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Minty API is running!",
        "version": settings.VERSION
    }

# ------------------------------------------------------------
# HEALTH CHECK ENDPOINT
# ------------------------------------------------------------
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT
    }

# ------------------------------------------------------------
# BUSINESS LOGIC ROUTES
# ------------------------------------------------------------
app.include_router(profile.router, prefix="/api/v1")
app.include_router(categories.router, prefix="/api/v1")
app.include_router(budgets.router, prefix="/api/v1")
app.include_router(transactions.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")
app.include_router(export.router, prefix="/api/v1")
app.include_router(chatbot.router, prefix="/api/v1/chatbot", tags=["Chatbot"])
app.include_router(notification_settings.router, prefix="/api/v1")
app.include_router(notification.router, prefix="/api/v1/notifications", tags=["Notifications"])

# ------------------------------------------------------------
# STARTUP / SHUTDOWN EVENTS
# ------------------------------------------------------------
@app.on_event("startup")
async def on_startup():
    """Create tables and start the periodic notification checks"""
    try:
        await create_db_and_tables()
        logger.info("✅ Database tables created successfully")
        logger.info(f"✅ Frontend URL: {settings.FRONTEND_URL}")

        if settings.OPENROUTER_API_KEY:
            logger.info("✅ OpenRouter API key configured for the AI assistant")
        else:
            logger.warning("⚠️ OpenRouter API key not configured - the assistant will answer with fallbacks")
    except Exception as e:
        logger.error(f"❌ Startup error: {str(e)}")

    if settings.ENABLE_SCHEDULER:
        app.state.periodic_checks.start()

@app.on_event("shutdown")
async def on_shutdown():
    await app.state.periodic_checks.stop()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("minty.main:app", host="0.0.0.0", port=port, reload=False)
