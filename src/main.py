from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from src.config import settings
from src.trains import router as trains_router
from src.fares import router as fares_router
from src.inventory import router as inventory_router
from src.bookings import router as bookings_router
from src.notifications import shutdown_email_workers

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)
    yield
    shutdown_email_workers()
    logger.info("Shut down %s", settings.PROJECT_NAME)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Indian Railway Booking System API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # Frontend dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(
    trains_router,
    prefix=f"{settings.API_V1_STR}/trains",
    tags=["Trains & Stations"]
)

app.include_router(
    fares_router,
    prefix=f"{settings.API_V1_STR}/fares",
    tags=["Fares"]
)

app.include_router(
    inventory_router,
    prefix=f"{settings.API_V1_STR}/inventory",
    tags=["Seat Inventory"]
)

app.include_router(
    bookings_router,
    prefix=f"{settings.API_V1_STR}/bookings",
    tags=["Booking & Ticketing"]
)

@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Indian Railway Booking System API",
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
