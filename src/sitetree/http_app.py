"""FastAPI app (internal-only).

Crawl workers post the links they discovered for a target URL and get the
site tree back; the same tree is persisted per site root.
"""

from __future__ import annotations

from fastapi import FastAPI, HTTPException

from .domain.errors import InvalidURLError, StorageError
from .domain.models import ErrorCode
from .lifespan import app_state
from .models.requests import LinksTreeRequest
from .observability.logger import get_logger
from .services.links_tree_service import LinksTreeService
from .utils.validators import is_valid_http_url

logger = get_logger(__name__)

app = FastAPI(title="Site Tree Service", version="0.1.0")


def _service() -> LinksTreeService:
    service = app_state.get("links_tree_service")
    if service is None:
        raise HTTPException(status_code=503, detail="links_tree_service_unavailable")
    return service


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


@app.post("/api/v1/links/tree")
async def update_links_tree(payload: LinksTreeRequest) -> dict:
    service = _service()
    try:
        result = await service.update_tree(payload)
    except InvalidURLError as exc:
        raise HTTPException(
            status_code=400,
            detail={"errorCode": exc.info.code, "errorMessage": str(exc), "detail": exc.info.detail},
        ) from exc
    except Exception as exc:
        logger.error("links_tree_update_failed", url=payload.url, error=str(exc))
        raise HTTPException(
            status_code=500,
            detail={"errorCode": ErrorCode.INTERNAL_ERROR.value, "errorMessage": str(exc)},
        ) from exc
    return result.to_payload()


@app.get("/api/v1/links/tree")
async def get_links_tree(rootUrl: str) -> dict:
    if not is_valid_http_url(rootUrl):
        raise HTTPException(status_code=400, detail="invalid_root_url")
    service = _service()
    try:
        tree = await service.get_tree(rootUrl)
    except StorageError as exc:
        logger.error("links_tree_read_failed", root_url=rootUrl, error=str(exc))
        raise HTTPException(
            status_code=500,
            detail={"errorCode": ErrorCode.STORAGE_ERROR.value, "errorMessage": str(exc)},
        ) from exc
    if tree is None:
        raise HTTPException(status_code=404, detail="tree_not_found")
    return tree.to_payload()
