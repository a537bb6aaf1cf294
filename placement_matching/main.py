"""
Placement Matching Engine - Main Application

FastAPI service with:
- MongoDB for student profiles and job postings
- Candidate-job matching engine (coverage, scoring, filtering, ranking)
- OpenAI-compatible LLM for match justifications

Run: uvicorn placement_matching.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from placement_matching import __version__
from placement_matching.api.routes import api_router
from placement_matching.core.logging_config import setup_logging
from placement_matching.db.mongodb import init_mongo_indexes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and MongoDB indexes on startup."""
    setup_logging()
    try:
        init_mongo_indexes()
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)
    yield


# Create FastAPI app
app = FastAPI(
    title="Placement Matching Engine",
    description="""
    Matches the student population to recruiter job postings.

    ## Features
    - **Team / individual policy**: chosen per run from the pool's combined skills
    - **Explainable scores**: 0-100 with a per-factor breakdown
    - **AI justifications**: for the top 50 matches, template fallback otherwise
    - **Skill extraction**: required / preferred skills from a job description

    ## Databases
    - MongoDB: students, jobs (match lists are stored on the job)
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health", tags=["Health"])
def health_check():
    """Detailed health check."""
    from placement_matching.db.mongodb import test_mongo_connection
    from placement_matching.services.llm_client import get_llm_client

    llm_client = get_llm_client()
    if llm_client is None:
        llm_status = "not configured"
    else:
        llm_status = "connected" if llm_client.test_connection() else "disconnected"

    return {
        "status": "healthy",
        "mongodb": "connected" if test_mongo_connection() else "disconnected",
        "llm": llm_status
    }
