from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import api as api_package
from app.api import include_routers
from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.database import init_databases, close_databases, get_database
from app.middleware.error_handler import ErrorHandlerMiddleware
from app.middleware.logging_middleware import LoggingMiddleware
from app.services.color_service import ChatColorClassifier
from app.services.profile_service import MongoProfileProvider
from app.websockets.handlers import WebSocketMessageHandler
from app.websockets.matching_service import MatchingService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    await init_databases()

    matching_service = MatchingService()
    await matching_service.start()

    app.state.matching_service = matching_service
    app.state.profile_provider = MongoProfileProvider(get_database())
    app.state.message_handler = WebSocketMessageHandler(
        matching_service,
        ChatColorClassifier(api_key=settings.openai_api_key),
    )
    logger.info("Matching server started")

    yield

    # Shutdown
    await matching_service.stop()
    await close_databases()
    logger.info("Matching server stopped")


app = FastAPI(title="Emotion Chat Matching", lifespan=lifespan)
app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,  # React(Vite) 개발 서버
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
include_routers(app, "api", api_package.__path__)


@app.get("/")
async def root():
    return {"message": "Emotion chat matching server"}
