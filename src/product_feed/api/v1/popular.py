import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from product_feed.api.dependencies import get_popular_terms_service
from product_feed.core.config import Settings, get_settings
from product_feed.core.rate_limit import limiter
from product_feed.domain.errors import TermRequiredError
from product_feed.domain.models import PopularTermsResponse, SearchTermStats
from product_feed.services.popular_terms_service import PopularTermsService, clamp_limit

router = APIRouter(tags=["Popular Search Terms"])

PopularTermsServiceDep = Annotated[PopularTermsService, Depends(get_popular_terms_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


def _parse_json_object(text: str) -> dict[str, Any] | None:
    try:
        data = json.loads(text or "{}")
    except ValueError:
        return None
    return data if isinstance(data, dict) else {}


async def _read_payload(request: Request) -> dict[str, Any]:
    """
    Liest den Request-Body abhängig vom Content-Type.
    text/plain darf JSON oder den rohen Suchbegriff enthalten.
    """
    content_type = request.headers.get("content-type", "").lower()

    if any(t in content_type for t in ("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        term = form.get("term")
        site_id = form.get("site_id")
        # Datei-Uploads statt Textfeldern werden ignoriert
        return {
            "term": term if isinstance(term, str) else "",
            "site_id": site_id if isinstance(site_id, str) else None,
        }

    body = (await request.body()).decode("utf-8", errors="replace")
    if "application/json" in content_type:
        return _parse_json_object(body) or {}

    # text/plain und alle anderen: erst JSON, sonst roher Text als Begriff
    parsed = _parse_json_object(body)
    return parsed if parsed is not None else {"term": body}


@router.post("/events/search", response_model=SearchTermStats)
@limiter.limit(lambda: get_settings().rate_limit_search_events)
async def record_search_event(
    request: Request,
    service: PopularTermsServiceDep,
) -> Any:
    """
    Zählt einen Suchbegriff. Fehlende Felder im Body werden aus dem
    Query-String ergänzt.
    """
    payload = await _read_payload(request)
    site_id = payload.get("site_id") or request.query_params.get("site_id")
    term = payload.get("term") or request.query_params.get("term")

    try:
        return await service.record_search(site_id, term)
    except TermRequiredError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"ok": False, "error": str(e)},
        )


@router.get("/popular", response_model=PopularTermsResponse)
async def get_popular_terms(
    service: PopularTermsServiceDep,
    settings: SettingsDep,
    limit: Annotated[str | None, Query()] = None,
    site_id: Annotated[str | None, Query()] = None,
) -> PopularTermsResponse:
    """Liefert die häufigsten Suchbegriffe einer Site, sortiert nach Anzahl und Aktualität."""
    n = clamp_limit(limit, settings.popular_default_limit, 1, settings.popular_max_limit)
    terms = await service.top_terms(site_id, n)
    return PopularTermsResponse(terms=terms, site_id=service.normalize_site(site_id))
