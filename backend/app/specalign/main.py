import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from specalign.api.v1.routes import router as v1_router
from specalign.core.errors import SpecAlignError
from specalign.database.config import init_db
from specalign.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()
    init_db()
    yield


app = FastAPI(title="SpecAlign", lifespan=lifespan)
app.include_router(v1_router)


@app.exception_handler(SpecAlignError)
async def specalign_error_handler(_request: Request, exc: SpecAlignError):
    """服务层错误统一转换为 {"detail", "kind"}"""
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} 错误: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/healthz", include_in_schema=False)
def healthz():
    return {"ok": True}
