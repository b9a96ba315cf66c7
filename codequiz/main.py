"""
FastAPI main application
Code Quiz - live multi-team coding quiz server

Modular architecture with separated API routers in codequiz/api/:
- health.py: Health check and system status
- questions.py: Admin question authoring
- sessions.py: Admin session lifecycle + participant session state
- team.py: Team join
- submission.py: Team answers + admin marking, concise bonus, final scores
- leaderboard.py: Ranked teams per session
- realtime.py: WebSocket change feed

All routers access shared state via codequiz.state module.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from codequiz import state
from codequiz.config import load_config
from codequiz.question_loader import seed_questions

# Import all API routers
from codequiz.api import health, questions, sessions, team, submission, leaderboard, realtime


# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup: Load settings and optional seed questions into global state
    try:
        state.SETTINGS = load_config()
        if state.SETTINGS.seed_questions:
            seed_questions(state.STORE, state.SETTINGS.seed_questions, state.SETTINGS.default_time_limit)
        logger.info(f"✅ Server started with {len(state.SETTINGS.admin_emails)} admins configured")
    except Exception as e:
        logger.error(f"❌ Failed to start server: {e}")
        raise

    yield

    # Shutdown
    logger.info("🛑 Server shutting down")


# Create FastAPI app
app = FastAPI(
    title="Code Quiz Server",
    description="Live coding quiz: sessions, team submissions, rubric marking and leaderboard",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware (allow all origins for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== INCLUDE ROUTERS ====================

# Health check (GET /)
app.include_router(health.router)

# Question authoring (/admin/questions)
app.include_router(questions.router)

# Session lifecycle (/admin/sessions) and participant view (/sessions)
app.include_router(sessions.admin_router)
app.include_router(sessions.router)

# Team join (POST /sessions/{id}/teams)
app.include_router(team.router)

# Submissions and marking
app.include_router(submission.router)
app.include_router(submission.admin_router)

# Leaderboard (GET /sessions/{id}/leaderboard)
app.include_router(leaderboard.router)

# Realtime feed (WS /ws/sessions/{id})
app.include_router(realtime.router)


# ==================== RUN SERVER ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
