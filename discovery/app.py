from __future__ import annotations

import logging
import os

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import (
    compute_click_through,
    compute_search_analytics,
    compute_trending_terms,
    events_since,
    resolve_report_period,
)
from .analytics.events import get_events
from .analytics.recorder import WRITERS, SearchClick, record_click
from .auth.dependencies import get_current_user, require_admin, require_user
from .auth.models import LoginRequest
from .auth.users import authenticate
from .geo.aggregator import aggregate_geography
from .search import history
from .search.assembler import project
from .search.config import DEFAULT_SEARCH_CONFIG
from .search.facets import filter_options, suggestions
from .search.models import (
    FavoriteIn,
    FilterOptions,
    HistoryEntryIn,
    SavedSearchIn,
    SearchClickIn,
    SearchResultPage,
    SuggestionsResponse,
)
from .search.query_parser import parse_offset, parse_page
from .search.service import search_contractors
from .store.data_store import RecordStore, StoreError, get_store

logger = logging.getLogger(__name__)

app = FastAPI(title="Contractor Discovery API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "discovery-secret-change-in-production"),
)


@app.exception_handler(StoreError)
def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    # Single attempt; the caller decides whether to retry
    logger.exception("Record store failure on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Contractor search ────────────────────────────────────────────────────


@app.get("/contractors/search", response_model=SearchResultPage)
def contractor_search(
    request: Request,
    background_tasks: BackgroundTasks,
    store: RecordStore = Depends(get_store),
    user: dict | None = Depends(get_current_user),
) -> SearchResultPage:
    # Raw params on purpose: bad values are defaulted, never rejected with 422
    outcome = search_contractors(
        request.query_params,
        store,
        user_id=user.get("id") if user else None,
    )

    # Analytics run after the response is sent and swallow their own failures
    for writer in WRITERS:
        background_tasks.add_task(writer, outcome.analytics)

    return outcome.result


@app.get("/contractors/search/suggestions", response_model=SuggestionsResponse)
def search_suggestions(
    q: str | None = None,
    store: RecordStore = Depends(get_store),
) -> SuggestionsResponse:
    return SuggestionsResponse(suggestions=suggestions(store, q))


@app.post("/contractors/search/click")
def search_click(
    body: SearchClickIn,
    background_tasks: BackgroundTasks,
    user: dict | None = Depends(get_current_user),
) -> dict:
    if not body.contractor_id:
        raise HTTPException(status_code=400, detail="Contractor ID is required")
    click = SearchClick(
        contractor_id=body.contractor_id,
        query=body.query,
        position=body.position,
        user_id=user.get("id") if user else None,
    )
    background_tasks.add_task(record_click, click)
    return {"status": "recorded"}


@app.get("/contractors/filters", response_model=FilterOptions)
def contractor_filters(store: RecordStore = Depends(get_store)) -> FilterOptions:
    return filter_options(store)


# ── Per-user search library ──────────────────────────────────────────────


@app.get("/search/history")
def get_search_history(request: Request, user: dict = Depends(require_user)) -> dict:
    limit = parse_page(request.query_params).limit
    offset = parse_offset(request.query_params)
    searches, total = history.list_history(user["id"], limit=limit, offset=offset)
    return {"searches": searches, "total": total, "limit": limit, "offset": offset}


@app.post("/search/history")
def add_search_history(body: HistoryEntryIn, user: dict = Depends(require_user)) -> dict:
    query = (body.search_query or "").strip()
    if not query:
        raise HTTPException(status_code=400, detail="Search query is required")
    entry = history.add_history(user["id"], query, body.filters, body.result_count)
    return {"success": True, "search_entry": entry}


@app.delete("/search/history")
def clear_search_history(user: dict = Depends(require_user)) -> dict:
    return {"success": True, "removed": history.clear_history(user["id"])}


@app.get("/search/saved")
def get_saved_searches(user: dict = Depends(require_user)) -> dict:
    return {"saved_searches": history.list_saved(user["id"])}


@app.post("/search/saved")
def save_search(body: SavedSearchIn, user: dict = Depends(require_user)) -> dict:
    name = (body.name or "").strip()
    query = (body.search_query or "").strip()
    if not name or not query:
        raise HTTPException(status_code=400, detail="Name and search query are required")
    return {"saved_search": history.save_search(user["id"], name, query, body.filters)}


@app.delete("/search/saved")
def delete_saved_search(
    search_id: str | None = Query(None, alias="id"),
    user: dict = Depends(require_user),
) -> dict:
    if not search_id:
        raise HTTPException(status_code=400, detail="Search ID is required")
    if not history.delete_saved(user["id"], search_id):
        raise HTTPException(status_code=404, detail="Saved search not found")
    return {"success": True}


@app.get("/search/favorites")
def get_favorites(
    user: dict = Depends(require_user),
    store: RecordStore = Depends(get_store),
) -> dict:
    favorites = history.list_favorites(user["id"])
    details = store.get_contractors([f["contractor_id"] for f in favorites])
    return {
        "favorites": [
            {
                **f,
                "contractor": (
                    project(details[f["contractor_id"]]).model_dump(by_alias=True)
                    if f["contractor_id"] in details else None
                ),
            }
            for f in favorites
        ]
    }


@app.post("/search/favorites")
def add_favorite(
    body: FavoriteIn,
    user: dict = Depends(require_user),
    store: RecordStore = Depends(get_store),
) -> dict:
    if not body.contractor_id:
        raise HTTPException(status_code=400, detail="Contractor ID is required")
    if not store.get_contractors([body.contractor_id]):
        raise HTTPException(status_code=404, detail="Contractor not found")
    return {"success": True, "favorite": history.add_favorite(user["id"], body.contractor_id)}


@app.delete("/search/favorites")
def remove_favorite(contractor_id: str | None = None, user: dict = Depends(require_user)) -> dict:
    if not contractor_id:
        raise HTTPException(status_code=400, detail="Contractor ID is required")
    return {"success": True, "removed": history.remove_favorite(user["id"], contractor_id)}


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/admin/analytics/geographic")
def geographic_analytics(
    period: str = "30d",
    region: str = "all",
    user: dict = Depends(require_admin),
    store: RecordStore = Depends(get_store),
) -> dict:
    return aggregate_geography(store, period=period, region=region)


@app.get("/admin/analytics/search")
def search_analytics(request: Request, user: dict = Depends(require_admin)) -> dict:
    page = parse_page(request.query_params, max_limit=DEFAULT_SEARCH_CONFIG.report_max_limit)
    return compute_search_analytics(get_events(), limit=page.limit)


@app.get("/admin/analytics/search/trending")
def trending_searches(
    request: Request,
    period: str | None = None,
    user: dict = Depends(require_admin),
) -> dict:
    label, days = resolve_report_period(period)
    limit = DEFAULT_SEARCH_CONFIG.trending_limit
    if "limit" in request.query_params:
        limit = parse_page(request.query_params, max_limit=DEFAULT_SEARCH_CONFIG.report_max_limit).limit
    return {"period": label, "trending_terms": compute_trending_terms(events_since(get_events(), days), limit)}


@app.get("/admin/analytics/search/clickthrough")
def click_through(period: str | None = None, user: dict = Depends(require_admin)) -> dict:
    label, days = resolve_report_period(period)
    return {"period": label, "ctr_metrics": compute_click_through(events_since(get_events(), days))}
