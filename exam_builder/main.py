# exam_builder/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from exam_builder.core.config import settings
from exam_builder.db.session import engine, init_db

# Import routers (router objects, not modules)
from exam_builder.api.exams import router as exams_router
from exam_builder.api.questions import router as questions_router
from exam_builder.api.payloads import router as payloads_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(engine)
    logger.info("Database schema ready")
    yield


app = FastAPI(
    title="Exam Builder",
    version="1.0.0",
    lifespan=lifespan,
)

# --------------------------------------------------
# CORS CONFIG
# --------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    # allow origin variations on localhost (ports) during development
    allow_origin_regex=r"http://localhost(:[0-9]+)?",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --------------------------------------------------
# API ROUTES
# --------------------------------------------------

# Exams (create, list, full tree, update, delete, issues)
app.include_router(exams_router, prefix="/api/v1")

# Questions
app.include_router(questions_router, prefix="/api/v1")

# Options and formula answers
app.include_router(payloads_router, prefix="/api/v1")


# --------------------------------------------------
# ROOT HEALTH CHECK
# --------------------------------------------------
@app.get("/")
def health_check():
    return {
        "status": "ok",
        "service": "Exam Builder",
        "version": "1.0.0"
    }
