"""
DICED Progression API

FastAPI wrapper serving the local quest board UI.
"""

from dataclasses import asdict
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from diced import __version__
from diced.bootstrap import Services, create_services
from diced.config import Settings, configure_logging
from diced.progression.stats import summarize_profile
from diced.quests.catalog import format_time_required, quest_difficulty, quest_hours
from diced.utils.constants import (
    DEFAULT_RECOMMENDATION_COUNT,
    MAX_RECENT_ACHIEVEMENTS,
    MSG_QUEST_NOT_FOUND,
)
from diced.utils.exceptions import (
    ProgressionValidationError,
    QuestNotFoundError,
    RankNotFoundError,
    StorageError,
    UnknownAttributeError,
)

app = FastAPI(
    title="DICED Progression",
    description="Ranks, levels and quest completion for the DICED culinary RPG",
    version=__version__,
)


class HoursRequest(BaseModel):
    """Body of POST /attributes/{name}/hours."""
    hours: float = Field(ge=0, allow_inf_nan=False)


@lru_cache(maxsize=1)
def get_services() -> Services:
    """Build services from the environment once per process."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return create_services(settings)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def _profile_response(services: Services) -> dict:
    profile = services.profile_store.load()
    return profile.model_dump(mode='json', by_alias=True)


@app.get("/")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "diced-progression",
        "version": __version__,
    }


@app.get("/health")
async def health():
    """Alias for health check."""
    return await health_check()


# =============================================================================
# Profile
# =============================================================================

@app.get("/profile")
def get_profile(services: Services = Depends(get_services)):
    """Current profile, normalized and persisted on first load."""
    response = _profile_response(services)
    if services.profile_store.warnings:
        response["warnings"] = list(services.profile_store.warnings)
    return response


@app.post("/profile/reset")
def reset_profile(services: Services = Depends(get_services)):
    """Discard all progress and return the default profile."""
    services.profile_store.reset()
    return _profile_response(services)


@app.get("/profile/stats")
def profile_stats(services: Services = Depends(get_services)):
    """Summary statistics for the dashboard."""
    profile = services.profile_store.load()
    return summarize_profile(profile, services.engine.rank_table).to_dict()


@app.get("/profile/next-rank")
def next_rank_status(services: Services = Depends(get_services)):
    """Per-attribute hours still needed to clear the current rank."""
    profile = services.profile_store.load()
    return asdict(services.engine.hours_for_next_rank(profile))


@app.get("/profile/achievements")
def recent_achievements(
    count: int = Query(MAX_RECENT_ACHIEVEMENTS, ge=0, le=MAX_RECENT_ACHIEVEMENTS),
    services: Services = Depends(get_services),
):
    """Most recent achievements, newest first."""
    return [
        achievement.model_dump(mode='json', by_alias=True)
        for achievement in services.profile_store.recent_achievements(count)
    ]


@app.get("/ranks")
def list_ranks(services: Services = Depends(get_services)):
    """The rank ladder, lowest first."""
    return [rank.to_dict() for rank in services.engine.rank_table]


# =============================================================================
# Quests
# =============================================================================

@app.get("/quests/available")
def available_quests(services: Services = Depends(get_services)):
    """Unlocked, uncompleted quests with their prerequisites met."""
    profile = services.profile_store.load()
    return [quest.to_dict() for quest in services.catalog.available_quests(profile)]


@app.get("/quests/recommended")
def recommended_quests(
    count: int = Query(DEFAULT_RECOMMENDATION_COUNT, ge=1, le=50),
    services: Services = Depends(get_services),
):
    """Quests suited to the current rank and level, plus the next challenge."""
    profile = services.profile_store.load()
    catalog = services.catalog
    challenge = catalog.next_challenge_quest(profile)
    return {
        "quests": [quest.to_dict() for quest in catalog.recommended_quests(profile, count)],
        "nextChallenge": challenge.to_dict() if challenge else None,
    }


@app.get("/quests/{quest_id}")
def get_quest(quest_id: str, services: Services = Depends(get_services)):
    """One quest with its status for the current profile."""
    try:
        quest = services.catalog.get(quest_id)
    except QuestNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    profile = services.profile_store.load()
    try:
        difficulty = quest_difficulty(quest, profile, services.engine.rank_table)
    except RankNotFoundError:
        difficulty = None

    return {
        **quest.to_dict(),
        "totalHours": quest_hours(quest),
        "timeRequiredText": format_time_required(quest.time_required),
        "difficulty": difficulty,
        "completed": profile.has_completed(quest.id),
        "unlocked": profile.is_unlocked(quest.id),
        "prerequisitesMet": services.catalog.prerequisites_met(
            quest.id, profile.completed_quests
        ),
    }


@app.post("/quests/{quest_id}/complete")
def complete_quest(quest_id: str, services: Services = Depends(get_services)):
    """
    Complete a quest.

    Returns the completion result. Unknown quests answer 404, rejected
    completions (already completed, locked) answer 409.
    """
    result = services.transaction.complete(quest_id)
    if result.success:
        return result.to_dict()

    status_code = 404 if result.message == MSG_QUEST_NOT_FOUND else 409
    return JSONResponse(status_code=status_code, content=result.to_dict())


# =============================================================================
# Attributes
# =============================================================================

@app.post("/attributes/{name}/hours")
def add_attribute_hours(
    name: str,
    body: HoursRequest,
    services: Services = Depends(get_services),
):
    """Log practice hours on one attribute outside of quests."""
    try:
        update = services.profile_store.update_attribute(name, body.hours)
    except UnknownAttributeError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProgressionValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "status": update.status,
        "hoursAdded": update.hours_added,
        "profile": update.profile.model_dump(mode='json', by_alias=True),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
