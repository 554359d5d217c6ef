import logging
from datetime import datetime
from typing import TypeVar

from fastapi import APIRouter, Depends, FastAPI, Header, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import admin
from .clock import utc_now
from .config import PoolConfig
from .errors import NotFoundError, PoolError, ValidationError
from .reveal import check_auto_reveal
from .schemas import AdminActionIn, SubmitIn
from .store import KeyValueStore, create_store
from .submissions import submit_pick
from .weeks import WeekRepository

logger = logging.getLogger(__name__)

BodyT = TypeVar("BodyT", bound=BaseModel)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    for name in ("sqlalchemy", "sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite"):
        logging.getLogger(name).setLevel(logging.WARNING)


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


# --- dependencies ---

def get_config(request: Request) -> PoolConfig:
    return request.app.state.config


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_now(request: Request):
    return request.app.state.clock()


def get_repo(
    store: KeyValueStore = Depends(get_store),
    config: PoolConfig = Depends(get_config),
) -> WeekRepository:
    return WeekRepository(store, config)


async def read_body(request: Request, model: type[BodyT]) -> BodyT:
    try:
        raw = await request.json()
    except ValueError:
        raise ValidationError("Invalid JSON body")
    if not isinstance(raw, dict):
        raise ValidationError("Invalid JSON body")

    try:
        return model.model_validate(raw)
    except SchemaError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"])
        raise ValidationError(f"Invalid {field}: {first['msg']}")


# --- routes ---

router = APIRouter()


@router.get("/status")
async def get_status(
    repo: WeekRepository = Depends(get_repo),
    config: PoolConfig = Depends(get_config),
):
    settings = await repo.get_settings()
    meta = await repo.get_week_meta(settings.current_week)
    doc = meta.to_doc()

    return {
        "currentWeek": settings.current_week,
        "tournament": meta.tournament,
        "locked": meta.locked,
        "revealed": meta.revealed,
        "revealedAt": doc["revealedAt"],
        "revealAfter": doc["revealAfter"],
        "autoReveal": admin.schedule_doc(settings),
        "revealMode": config.reveal_mode,
        "timezone": config.timezone,
        "members": list(config.members),
        "seasonLength": config.season_length,
    }


@router.get("/weeks")
async def get_weeks(repo: WeekRepository = Depends(get_repo)):
    weeks = await repo.get_weeks()
    return {"weeks": [e.to_doc() for e in weeks]}


@router.get("/picks")
async def get_picks(
    week: str | None = None,
    x_admin_key: str | None = Header(None),
    repo: WeekRepository = Depends(get_repo),
    config: PoolConfig = Depends(get_config),
):
    """Full picks once revealed (or for admins); before that only who has submitted."""
    settings = await repo.get_settings()
    if week is None or not week.strip():
        week_num = settings.current_week
    else:
        try:
            week_num = int(week)
        except ValueError:
            raise ValidationError("Invalid week number")
    if week_num < 1:
        raise ValidationError("Invalid week number")

    meta = await repo.find_week_meta(week_num)
    if meta is None:
        raise NotFoundError(f"Week {week_num} not found")
    all_picks = await repo.find_picks(week_num) or {}

    picks = None
    submitted = None
    if meta.revealed or admin.is_admin_key(config, x_admin_key):
        picks = admin.picks_doc(all_picks)
    else:
        submitted = list(all_picks)

    return {
        "week": meta.week,
        "tournament": meta.tournament,
        "locked": meta.locked,
        "revealed": meta.revealed,
        "revealedAt": meta.to_doc()["revealedAt"],
        "picks": picks,
        "submitted": submitted,
    }


@router.post("/submit")
async def post_submit(
    request: Request,
    repo: WeekRepository = Depends(get_repo),
    now: datetime = Depends(get_now),
):
    body = await read_body(request, SubmitIn)
    return await submit_pick(repo, body.name, body.golfer_pick, now)


@router.post("/admin")
async def post_admin(
    request: Request,
    x_admin_key: str | None = Header(None),
    repo: WeekRepository = Depends(get_repo),
    config: PoolConfig = Depends(get_config),
    now: datetime = Depends(get_now),
):
    # credential first, body second
    admin.require_admin_key(config, x_admin_key)
    body = await read_body(request, AdminActionIn)
    return await admin.run_action(repo, body, now)


# --- app ---

def create_app(config: PoolConfig | None = None, store: KeyValueStore | None = None) -> FastAPI:
    config = config or PoolConfig.load()
    setup_logging(config.log_level)

    app = FastAPI(title="Pick Pool")
    app.state.config = config
    app.state.store = store or create_store(config.database_url)
    app.state.clock = utc_now

    @app.on_event("startup")
    async def startup_event():
        await app.state.store.init_models()
        logger.info(
            "Pick pool ready: %d members, %d weeks, reveal mode %s (%s)",
            len(config.members), config.season_length, config.reveal_mode, config.timezone,
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        await app.state.store.close()

    @app.exception_handler(PoolError)
    async def pool_error_handler(request: Request, exc: PoolError):
        return error_response(exc.message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return error_response("Not found", 404)
        return error_response(str(exc.detail), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response("Invalid request", 400)

    @app.middleware("http")
    async def pool_middleware(request: Request, call_next):
        try:
            # bootstrap and auto-reveal run ahead of routing, for every path
            if request.method != "OPTIONS":
                repo = WeekRepository(app.state.store, app.state.config)
                now = app.state.clock()
                await repo.ensure_initialized(now)
                await check_auto_reveal(repo, now)
            return await call_next(request)
        except Exception as e:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return error_response(f"Internal error: {e}", 500)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Admin-Key"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.options("/{path:path}")
    def options_any(path: str):
        return Response(status_code=204)

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pickpool.main:app", host="0.0.0.0", port=8000)
