import uvicorn
from fastapi import FastAPI

from cartwise.api.routes.health import router as health_router
from cartwise.api.routes.recommend import router as recommend_router
from cartwise.config import settings
from cartwise.logging_config import configure

app = FastAPI(title="Cartwise API", version="0.1.0")
app.include_router(health_router)
app.include_router(recommend_router)


def run() -> None:
    configure(json_output=settings.log_json, level=settings.log_level)
    uvicorn.run("cartwise.api.app:app", host=settings.app_host, port=settings.app_port, reload=False)
