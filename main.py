# libraries
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import OpenAI
from sqlalchemy.orm import sessionmaker

# modules
import models  # noqa: F401  (registers tables on Base.metadata)
import schemas
from catalog import Catalog
from config import Settings, load_settings
from database import Base, build_engine, build_session_factory
from errors import UnknownTool
from orchestrator import Orchestrator
from prompts import SERVER_ERROR_ANSWER
from seed import seed_catalog


logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    llm_client: OpenAI | None = None,
    session_factory: sessionmaker | None = None,
) -> FastAPI:
    """
    build the fastapi app.

    anything not passed in (llm client, db session factory) is built in the
    lifespan handler and torn down on shutdown. tests pass fakes in instead.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = app.state.settings or load_settings()
        app.state.settings = cfg
        logging.basicConfig(
            level=cfg.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        engine = None
        factory = session_factory
        if factory is None:
            engine = build_engine(cfg)
            factory = build_session_factory(engine)
            # create db schema if it doesn't exist yet
            Base.metadata.create_all(bind=engine)

        if cfg.seed_on_startup:
            seed_catalog(factory)

        client = llm_client
        owns_client = client is None
        if owns_client:
            client = OpenAI(api_key=cfg.api_key, base_url=cfg.base_url)

        app.state.orchestrator = Orchestrator(
            client=client,
            catalog=Catalog(factory),
            model=cfg.model,
            timeout=cfg.llm_timeout,
        )
        logger.info("assistant ready model=%s", cfg.model)

        try:
            yield
        finally:
            if owns_client:
                client.close()
            if engine is not None:
                engine.dispose()

    # settings are needed before startup for the cors middleware
    cors_origins = settings.cors_origins if settings is not None else load_settings().cors_origins

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        # unreadable bodies still get the {"answer": ...} shape the form expects
        detail = "; ".join(str(err.get("msg", "")) for err in exc.errors()) or "invalid request"
        logger.warning("rejected request body: %s", detail)
        return JSONResponse(
            {"answer": SERVER_ERROR_ANSWER.format(detail=detail)},
            status_code=500,
        )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/api/chat", response_model=schemas.ChatResponse)
    def chat(
        payload: schemas.ChatRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ):
        """
        answer one free-text message.

        - 200 {"answer": ...} on success (tool path or direct answer)
        - 400 when the model picked a tool we don't have
        - 500 for provider / argument / catalog failures
        """
        try:
            result = orchestrator.answer(payload.message or "")
        except Exception as e:
            # anything the orchestrator didn't classify is still a 500 with a readable message
            logger.exception("chat request crashed")
            return JSONResponse(
                {"answer": SERVER_ERROR_ANSWER.format(detail=str(e) or "unknown error")},
                status_code=500,
            )

        if result.ok:
            return schemas.ChatResponse(answer=result.answer)

        status = 400 if result.error == UnknownTool.kind else 500
        return JSONResponse({"answer": result.answer}, status_code=status)

    return app


def get_orchestrator(request: Request) -> Orchestrator:
    """fastapi dependency: the orchestrator built at startup."""
    return request.app.state.orchestrator


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
