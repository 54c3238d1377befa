"""FastAPI app exposing the search service."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from orchestrator import SearchService
from utils.exceptions import ConfigurationError, InvalidQueryError, ProviderRequestError
from webapp.runtime import get_search_service


logger = logging.getLogger(__name__)

app = FastAPI(title="Authority Search Portal API")


class SearchPayload(BaseModel):
    query: str = ""
    cost_mode: Optional[str] = None


@app.get("/api/healthz")
def health() -> Dict[str, Any]:
    return {"ok": True, "ts": datetime.now(timezone.utc).isoformat(timespec="seconds")}


@app.get("/api/config")
def config(service: SearchService = Depends(get_search_service)) -> Dict[str, Any]:
    return service.describe_config()


@app.post("/api/search")
async def search(payload: SearchPayload, service: SearchService = Depends(get_search_service)) -> Dict[str, Any]:
    try:
        response = await service.search(payload.query, cost_mode=payload.cost_mode)
    except (InvalidQueryError, ConfigurationError) as exc:
        raise HTTPException(status_code=400, detail={"error": exc.message, **exc.details}) from exc
    except ProviderRequestError as exc:
        logger.warning("search_provider_error provider=%s status=%d", exc.provider, exc.status_code)
        raise HTTPException(
            status_code=502,
            detail={"error": exc.message, "provider": exc.provider, "provider_status": exc.status_code},
        ) from exc
    except Exception as exc:
        logger.exception("search_failed")
        raise HTTPException(status_code=500, detail={"error": "Search pipeline failed."}) from exc
    return response.to_payload()
