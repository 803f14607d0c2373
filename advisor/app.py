from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from advisor.application.container import Services, build_services
from advisor.core.logging import configure_logging
from advisor.core.settings import Settings
from advisor.routes import batch, recommendations


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    if services is None:
        configure_logging(settings)
        services = build_services(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        await services.aclose()

    app = FastAPI(title="Spending Advisor API", version="0.1.0", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(recommendations.router, prefix="/api")
    app.include_router(batch.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Spending Advisor API",
                "docs": "/docs",
                "tasks": "/api/tasks",
            }
        )

    return app


app = create_app()
