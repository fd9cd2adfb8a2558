import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from core.database import create_db_and_tables
from routes.auth import router as auth_router
from routes.dues import router as dues_router
from routes.manual_payment import router as manual_payment_router
from routes.quick import router as quick_router
from routes.webhooks import router as webhooks_router

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


# =========================================
# 🏁 Lifespan (DB initialization)
# =========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("✅ Database tables created on startup.")
    yield
    logger.info("✅ Application shutting down.")


# =========================================
#  ✅ FastAPI App
# =========================================
app = FastAPI(
    lifespan=lifespan,
    title="Bandflow Dues Backend",
    debug=settings.DEBUG,
    docs_url=None if settings.IS_PRODUCTION else "/docs",
)

allowed_origins = [
    settings.FRONTEND_URL.rstrip("/"),
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(dict.fromkeys(allowed_origins)),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================
# 📦 Routers
# =========================================
app.include_router(auth_router, prefix="/auth", tags=["Authentication"])
app.include_router(dues_router)
app.include_router(manual_payment_router)
app.include_router(quick_router)
app.include_router(webhooks_router)


# =========================================
# 🩺 Health Check
# =========================================
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "Backend is running"}
