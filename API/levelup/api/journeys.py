from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from levelup.api.deps import get_journey_store
from levelup.memory.journey_store import JourneyStore
from levelup.schemas.journeys import (
    CreateJourneyRequest,
    CreateJourneyResponse,
    JourneyListResponse,
    JourneyResponse,
    UpdateJourneyRequest,
)

router = APIRouter(prefix="/journeys", tags=["journeys"])


@router.post("", response_model=CreateJourneyResponse)
async def create_journey(payload: CreateJourneyRequest, store: JourneyStore = Depends(get_journey_store)):
    journey = store.create_journey(payload.model_dump())
    return CreateJourneyResponse(message="Journey created successfully", journey_id=journey.id)


@router.get("", response_model=JourneyListResponse)
async def list_journeys(user_id: str | None = None, store: JourneyStore = Depends(get_journey_store)):
    return JourneyListResponse(data=store.list_journeys(user_id=user_id))


@router.get("/{journey_id}", response_model=JourneyResponse)
async def get_journey(journey_id: str, store: JourneyStore = Depends(get_journey_store)):
    journey = store.get_journey(journey_id)
    if journey is None:
        raise HTTPException(status_code=404, detail="Journey not found")
    return JourneyResponse(data=journey)


@router.put("/{journey_id}", response_model=JourneyResponse)
async def update_journey(
    journey_id: str,
    payload: UpdateJourneyRequest,
    store: JourneyStore = Depends(get_journey_store),
):
    journey = store.update_journey(journey_id, payload.model_dump(exclude_unset=True))
    if journey is None:
        raise HTTPException(status_code=404, detail="Journey not found")
    return JourneyResponse(data=journey)


@router.delete("/{journey_id}")
async def delete_journey(journey_id: str, store: JourneyStore = Depends(get_journey_store)):
    if not store.delete_journey(journey_id):
        raise HTTPException(status_code=404, detail="Journey not found or already deleted")
    return {"success": True, "message": "Journey deleted successfully"}
