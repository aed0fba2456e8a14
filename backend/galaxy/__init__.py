from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from galaxy.config import settings
from galaxy.db import init_all_databases
from galaxy.db.sqlite import persist_interval
from galaxy.services.review_session import ReviewDesk


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_all_databases(settings.galaxy_data_dir)
    yield
    # Let graded-but-unwritten intervals land before shutting down
    await app.state.review_desk.tracker.drain()


def create_app() -> FastAPI:
    application = FastAPI(
        title="Knowledge Galaxy Backend", version="0.1.0", lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.review_desk = ReviewDesk(persist=persist_interval)

    from galaxy.routers import atlas, capture, health, review, setup, stars

    application.include_router(health.router)
    application.include_router(
        capture.router, prefix="/capture", tags=["capture"]
    )
    application.include_router(
        review.router, prefix="/review", tags=["review"]
    )
    application.include_router(
        atlas.router, prefix="/atlas", tags=["atlas"]
    )
    application.include_router(
        stars.router, prefix="/galaxy", tags=["galaxy"]
    )
    application.include_router(
        setup.router, prefix="/settings", tags=["settings"]
    )

    return application


app = create_app()
