from __future__ import annotations

import threading
import time
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request

from ouilookup.config import load_config, registry_source
from ouilookup.errors import OuiLookupError
from ouilookup.log import get_logger
from ouilookup.models import LookupResult, OuiEntry
from ouilookup.resolver import Oui, normalize_oui

logger = get_logger("api")

DEFAULT_RETRY_INTERVAL = 60.0

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(title="ouilookup", docs_url="/docs", redoc_url="/redoc")


@app.middleware("http")
async def time_requests(request: Request, call_next):
    start = time.monotonic()
    response = await call_next(request)
    elapsed = (time.monotonic() - start) * 1000
    response.headers["X-Response-Time-Ms"] = f"{elapsed:.1f}"
    if response.status_code >= 500:
        logger.warning("%s %s -> %d", request.method, request.url.path, response.status_code)
    else:
        logger.debug("%s %s -> %d (%.1fms)", request.method, request.url.path,
                     response.status_code, elapsed)
    return response

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

_config = load_config()
_api_key = _config.get("web", {}).get("api_key")
_source: Optional[str] = None
_timeout: float = _config.get("registry", {}).get("timeout", 30.0)
_retry_interval: float = _config.get("registry", {}).get("retry_interval", DEFAULT_RETRY_INTERVAL)


def configure(source: Optional[str] = None, timeout: Optional[float] = None) -> None:
    """Point the service at a registry source before it starts serving.

    Values left as ``None`` fall back to ``OUILOOKUP_SOURCE`` and the
    ``[registry]`` config section.  Any loaded table is discarded.
    """
    global _source, _timeout, _registry, _last_failure
    with _registry_lock:
        _source = source
        if timeout is not None:
            _timeout = timeout
        _registry = None
        _last_failure = None

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

def _presented_token(authorization: Optional[str], token: Optional[str]) -> Optional[str]:
    # Query token is accepted for clients that cannot set headers.
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):]
    return token


async def verify_api_key(
    authorization: Optional[str] = Header(default=None),
    token: Optional[str] = Query(default=None),
):
    if not _api_key:
        return
    if _presented_token(authorization, token) != _api_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_registry: Optional[Oui] = None
_last_failure: Optional[tuple[float, str]] = None
_registry_lock = threading.Lock()


def get_registry() -> Oui:
    """Load the registry on first use; the table is shared read-only afterwards.

    Requests arriving during the first load wait for it.  After a failed
    load, requests are answered with 503 from the stored failure until
    ``_retry_interval`` seconds have passed, then one request retries.
    """
    global _registry, _last_failure
    if _registry is not None:
        return _registry
    with _registry_lock:
        if _registry is not None:
            return _registry
        if _last_failure is not None:
            failed_at, reason = _last_failure
            if time.monotonic() - failed_at < _retry_interval:
                raise HTTPException(status_code=503, detail=reason)
        source = _source or registry_source(_config)
        try:
            _registry = Oui.load(source, timeout=_timeout)
        except OuiLookupError as exc:
            _last_failure = (time.monotonic(), str(exc))
            logger.error("registry load failed: %s", exc)
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        _last_failure = None
        logger.info("serving %d entries from %s", len(_registry), source)
        return _registry

# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/health")
def health(registry: Oui = Depends(get_registry)):
    return {"status": "ok", "entries": len(registry)}


@app.get("/api/v1/oui/{address}", response_model=LookupResult, dependencies=[Depends(verify_api_key)])
def lookup(address: str, registry: Oui = Depends(get_registry)):
    organization = registry.get_name(address)
    if organization is None:
        raise HTTPException(status_code=404, detail=f"No organization registered for {address}")
    return LookupResult(address=address, oui=normalize_oui(address), organization=organization)


@app.get("/api/v1/entries", dependencies=[Depends(verify_api_key)])
def list_entries(
    prefix: str = "",
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    registry: Oui = Depends(get_registry),
):
    prefix = prefix.replace(":", "").replace("-", "").upper()
    keys = registry.keys(prefix)
    items = [
        OuiEntry(oui=oui, organization=registry.organization(oui))
        for oui in keys[offset:offset + limit]
    ]
    return {
        "items": items,
        "total": len(keys),
        "limit": limit,
        "offset": offset,
    }
