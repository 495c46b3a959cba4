import os
import logging
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

# === Logging ===
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# === Config ===
from app.core.config import CORS_ORIGINS, missing_provider_keys
from app.core.db import init_db
from app.middleware.api_logger import APILoggerMiddleware
from app.services.validation import format_validation_errors

# === Validate provider keys ===
missing = missing_provider_keys()
if missing:
    logger.warning(f"⚠️ Missing provider API keys: {', '.join(missing)}")
else:
    logger.info("✅ All provider API keys loaded.")

# === Routers ===
from app.api.v1 import admin, auth, prompts, transactions


# === App lifecycle ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        init_db()
        logger.info("✅ Startup complete: tables ready.")
        yield
    except Exception as e:
        logger.exception("❌ Startup failed.")
        raise e
    finally:
        logger.info("🛑 Shutdown complete.")


# === Initialize App ===
app = FastAPI(
    title="PromptForge API",
    version="1.0.0",
    lifespan=lifespan
)


# === Global Exception Handler ===
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    message = format_validation_errors(exc.errors())
    logger.warning(f"⚠️ Validation Error on {request.url.path}: {message}")
    return JSONResponse(
        status_code=400,
        content={"detail": f"Validation error: {message}"}
    )


# === CORS ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Request Logging ===
app.add_middleware(APILoggerMiddleware)


# === Health Check ===
@app.get("/ping")
async def ping():
    return {"status": "ok", "message": "PromptForge API is live"}


# === Mount API Routes ===
app.include_router(auth.router, prefix="/api")
app.include_router(prompts.router, prefix="/api")
app.include_router(transactions.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


# === Dev Hot Reload ===
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=os.getenv("ENV") == "dev")
