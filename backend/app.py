"""
FastAPI backend for rating submission.

Provides REST endpoints for:
- Health check
- Submitting a rating for a ground

A rating must name an existing ground id from the canonical grounds
document; the merge pipeline keeps those ids stable across imports.
"""

import logging
import math
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Set

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from backend.ratings import GitHubRatingsStore, LocalRatingsStore, RatingsStoreError
from groundmap.errors import StoreError
from groundmap.store import load_venues

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Cricket Grounds - Ratings API",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

DATA_DIR = Path(__file__).parent.parent / 'data'
GROUNDS_FILE = Path(os.environ.get('GROUNDS_FILE', DATA_DIR / 'grounds.json'))

RATING_FIELDS = ['pitch', 'pavilion', 'bar', 'atmosphere', 'value']
REQUIRED_FIELDS = ['ground_id'] + RATING_FIELDS

MAX_NAME_CHARS = 80
MAX_COMMENT_CHARS = 300
MAX_UA_CHARS = 120


# Pydantic models
class HealthResponse(BaseModel):
    status: str


class RatingEntry(BaseModel):
    ground_id: str
    pitch: float
    pavilion: float
    bar: float
    atmosphere: float
    value: float
    name: str = ''
    comment: str = ''
    created_at: str
    ua: str = ''


class SubmitResponse(BaseModel):
    ok: bool


# Dependencies
def get_ratings_store():
    """Pick the ratings backend from the environment (None if unconfigured)."""
    token = os.environ.get('GITHUB_TOKEN')
    repo = os.environ.get('GITHUB_REPO')
    if token and repo:
        return GitHubRatingsStore(
            token=token,
            repo=repo,
            branch=os.environ.get('GITHUB_BRANCH', 'main'),
            path=os.environ.get('RATINGS_PATH', 'data/ratings.json'),
        )
    ratings_file = os.environ.get('RATINGS_FILE')
    if ratings_file:
        return LocalRatingsStore(Path(ratings_file))
    return None


def get_ground_ids() -> Set[str]:
    """Ids of all grounds in the canonical document."""
    try:
        venues = load_venues(GROUNDS_FILE)
    except StoreError as e:
        logger.error(f"Cannot load grounds: {e}")
        raise HTTPException(status_code=500, detail='Grounds unavailable')
    return {str(v['id']) for v in venues if v.get('id')}


def build_entry(body: Dict[str, Any], user_agent: str = '') -> RatingEntry:
    """
    Validate a submission and build the stored entry.

    Raises:
        HTTPException: 400 for missing or non-numeric fields
    """
    for key in REQUIRED_FIELDS:
        if body.get(key) is None:
            raise HTTPException(status_code=400, detail=f"Missing field: {key}")

    scores = {}
    for key in RATING_FIELDS:
        value = body[key]
        if isinstance(value, bool):
            raise HTTPException(status_code=400, detail=f"Invalid value for field: {key}")
        try:
            scores[key] = float(value)
        except (TypeError, ValueError):
            raise HTTPException(status_code=400, detail=f"Invalid value for field: {key}")
        # NaN/Infinity cannot be written as JSON
        if not math.isfinite(scores[key]):
            raise HTTPException(status_code=400, detail=f"Invalid value for field: {key}")

    return RatingEntry(
        ground_id=str(body['ground_id']),
        name=str(body.get('name') or '')[:MAX_NAME_CHARS],
        comment=str(body.get('comment') or '')[:MAX_COMMENT_CHARS],
        created_at=datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        ua=(user_agent or '')[:MAX_UA_CHARS],
        **scores,
    )


# Health check
@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/api/ratings", response_model=SubmitResponse)
def submit_rating(
    request: Request,
    body: Dict[str, Any] = Body(...),
    store=Depends(get_ratings_store),
    ground_ids: Set[str] = Depends(get_ground_ids),
):
    """
    Append a rating for a ground.

    Body: {ground_id, pitch, pavilion, bar, atmosphere, value, name?, comment?}
    """
    entry = build_entry(body, request.headers.get('user-agent', ''))

    if entry.ground_id not in ground_ids:
        raise HTTPException(status_code=404, detail='Unknown ground_id')

    if store is None:
        raise HTTPException(status_code=500, detail='Server not configured')

    try:
        store.append(entry.model_dump())
    except RatingsStoreError as e:
        logger.error(f"Rating for {entry.ground_id} not stored: {e}")
        detail = str(e) if e.status is None else f"{e} (status {e.status})"
        raise HTTPException(status_code=502, detail=detail)

    logger.info(f"Stored rating for {entry.ground_id}")
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
