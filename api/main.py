"""
Main API application
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from api.analysis_api import router as analysis_router
from api.competition_api import router as competition_router
from api.leaderboard_api import router as leaderboard_router
from api.shared import LOG_LEVEL, STORE_BACKEND, get_store

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup và shutdown events"""
    logger.info("Starting server - loading store (%s backend)...", STORE_BACKEND)

    try:
        store = get_store()
        questions = store.list_questions()
        logger.info("Loaded %d questions", len(questions))
        logger.info("Server is ready.")
    except Exception as e:
        logger.error("Error loading data: %s", e)
        raise

    yield

    # Shutdown
    logger.info("Shutting down server...")


app = FastAPI(
    title="Morse Code Competition API",
    description="API cho cuộc thi morse tuần tự và bảng xếp hạng",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(competition_router)
app.include_router(leaderboard_router)
app.include_router(analysis_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Morse Code Competition API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
