# Role: FastAPI app bootstrap. Loads environment config early, registers routers, and exposes health/docs endpoints.

from fastapi import FastAPI

import alumni_bot.config
alumni_bot.config.load_env()

from alumni_bot.api.classify import router as classify_router
from alumni_bot.api.session import router as session_router
from alumni_bot.api.turn import router as turn_router

app = FastAPI(title="Alumni Bot Core API", version="0.1.0")
app.include_router(turn_router)
app.include_router(classify_router)
app.include_router(session_router)

@app.get("/")
def root() -> dict:
    # Role: quick discoverability for clients (where are docs/health).
    return {
        "message": "Alumni bot core is running",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
