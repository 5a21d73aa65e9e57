# sleep_tracker/api/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sleep_tracker import __version__
from sleep_tracker.api.routes import goal_routes, sleep_routes, webhook_routes
from sleep_tracker.config.config_manager import get_config
from sleep_tracker.utils.logging_setup import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(get_config(), log_name='sleep_api')
    yield


def create_app(config=None) -> FastAPI:
    config = config or get_config()

    app = FastAPI(
        title="Sleep Tracker API",
        description="API for ingesting Health Auto Export sleep data and analyzing sleep trends",
        version=__version__,
        lifespan=lifespan,
    )

    # Enable CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get('api.cors_origins', ["*"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(webhook_routes.router)
    app.include_router(sleep_routes.router)
    app.include_router(goal_routes.router)

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to the Sleep Tracker API",
            "version": __version__,
            "documentation": "/docs"
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
