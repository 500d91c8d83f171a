from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv
import os
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load environment variables from .env file FIRST
load_dotenv()

from config import get_settings
from database import create_db_and_tables
from exceptions import register_exception_handlers
from routers import auth, partners, admin
from middleware.activity_logger import ActivityLoggingMiddleware
from middleware.security_headers import SecurityHeadersMiddleware
from rate_limit import limiter
from slowapi.errors import RateLimitExceeded

settings = get_settings()
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("Medico API started")
    yield


app = FastAPI(
    title="Medico API",
    description="Partner discount marketplace for Medico members",
    version="0.1.0",
    lifespan=lifespan
)

# Set up rate limiter
limiter.enabled = limiter.enabled and settings.RATE_LIMIT_ENABLED
app.state.limiter = limiter


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"message": f"Rate limit exceeded: {exc.detail}"})


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
register_exception_handlers(app)

origins = [
    "http://localhost:3000",  # Development frontend
    settings.FRONTEND_URL,
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With", "Accept", "Origin"],
)

app.add_middleware(ActivityLoggingMiddleware)

# Added last so it wraps every response
app.add_middleware(SecurityHeadersMiddleware)

# Uploaded partner documents, stored as "uploads/partners/<id>/<file>"
app.mount(
    f"/{settings.UPLOAD_URL_PREFIX}",
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)

app.include_router(auth.router)
app.include_router(partners.router)
app.include_router(admin.router)


@app.get("/")
def read_root():
    return {"ok": True, "message": "Medico Backend Running"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}
