"""
Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import sys

from mentora.core.config import settings
from mentora.core.logging import audit_log
from mentora.core.security import identity_verifier
from mentora.db.mongodb import init_mongodb, close_mongodb, mongodb

# Import routers
from mentora.api.users import router as users_router
from mentora.api.courses import router as courses_router
from mentora.api.enrollments import router as enrollments_router
from mentora.api.assignments import router as assignments_router
from mentora.api.feedbacks import router as feedbacks_router
from mentora.api.utils import router as utils_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Opens the shared MongoDB handle and the identity provider.
    Fails fast if the database cannot be reached.
    """
    # Startup
    print("=" * 50)
    print(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    print(f"Debug mode: {settings.DEBUG}")
    print(f"  MongoDB: {'Atlas (MONGODB_URI)' if settings.MONGODB_URI else 'Local (component config)'}")
    print("=" * 50)

    try:
        print("Connecting to MongoDB...")
        await init_mongodb()
        print("✓ MongoDB connected")
    except Exception as e:
        print(f"✗ MongoDB connection failed: {e}")
        sys.exit(1)

    try:
        identity_verifier.initialize()
        print("✓ Firebase Admin initialized")
    except Exception as e:
        # Public endpoints keep working; protected ones answer 403 until configured
        audit_log.error("app.startup.firebase_unavailable", error=str(e))
        print(f"✗ Firebase Admin not initialized: {e}")

    print("Server ready.")

    yield

    # Shutdown
    print("Shutting down...")
    await close_mongodb()
    print("All connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Mentora learning-management platform API",
    lifespan=lifespan
)

# Parse CORS_ORIGINS: can be "*" or comma-separated list
cors_origins = settings.CORS_ORIGINS
if cors_origins == "*":
    allow_origins = ["*"]
else:
    allow_origins = [origin.strip() for origin in cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(users_router)
app.include_router(courses_router)
app.include_router(enrollments_router)
app.include_router(assignments_router)
app.include_router(feedbacks_router)
app.include_router(utils_router)


@app.get("/")
async def root():
    """Liveness banner."""
    return {"message": "Mentora LMS API Running"}


@app.get("/health")
async def health_check():
    """
    Detailed health check that verifies the database connection.
    """
    health = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "databases": {}
    }

    try:
        await mongodb.db.command("ping")
        health["databases"]["mongodb"] = "connected"
    except Exception as e:
        health["databases"]["mongodb"] = f"error: {str(e)}"
        health["status"] = "unhealthy"

    return health


def run() -> None:
    """Serve the API with uvicorn on HOST:PORT."""
    import uvicorn

    uvicorn.run("mentora.main:app", host=settings.HOST, port=settings.PORT)
