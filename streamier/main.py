import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from strawberry.fastapi import GraphQLRouter

from . import database
from .api import get_context, schema
from .auth import purge_expired_sessions
from .config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    database.init_storage()
    with database.SessionLocal() as session:
        purge_expired_sessions(session)
    logger.info("Account store ready at %s", database.engine.url.render_as_string(hide_password=True))
    yield
    database.engine.dispose()


app = FastAPI(title="Streamier Accounts", version="1.0", lifespan=lifespan)

graphql_router = GraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide="graphiql" if settings.GRAPHIQL else None,
)
app.include_router(graphql_router, prefix="/graphql")


@app.get("/healthz", include_in_schema=False)
def healthz():
    return {"status": "ok"}


def run() -> None:
    import uvicorn

    uvicorn.run("streamier.main:app", host=settings.WEB_HOST, port=settings.WEB_PORT)
