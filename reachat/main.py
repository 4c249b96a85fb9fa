from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging
import os

from .component_registry import get_global_registry, register_default_components
from .event_bus import get_global_event_bus
from .routers import pipeline_router

# Load environment variables
load_dotenv()

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="ReaChat Content Pipeline")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("REACHAT_CORS_ORIGINS", "http://localhost:5173").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include content pipeline router
app.include_router(pipeline_router)


# Built-in components must resolve before the first request
if not get_global_registry().list():
    register_default_components(get_global_registry())
get_global_event_bus().log_session("Backend started")


@app.get("/")
async def root():
    return {"message": "ReaChat Content Pipeline API", "status": "running"}


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "components": len(get_global_registry()),
        "events": len(get_global_event_bus()),
    }
