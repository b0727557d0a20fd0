import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.logger import configure_logging
from realtime_console.api.routes import router

configure_logging()

app = FastAPI(title="Realtime Console Relay")


def _get_allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if not raw:
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    return [item.strip() for item in raw.split(",") if item.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_allowed_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok"}
