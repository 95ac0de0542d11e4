"""
Worker endpoints - location pings from field workers and the admin map view.
"""

from typing import List

from fastapi import APIRouter, Depends

from app.models.user import Actor
from app.models.worker import WorkerLocation, WorkerLocationUpdate
from app.services.lifecycle_engine import LifecycleEngine, get_lifecycle_engine
from app.utils.security import get_current_actor

router = APIRouter(prefix="/workers", tags=["Workers"])


@router.put("/me/location", response_model=WorkerLocation)
async def update_my_location(
    update: WorkerLocationUpdate,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    """
    Replace the calling worker's location snapshot.
    """
    return engine.update_worker_location(actor, update)


@router.get("/locations", response_model=List[WorkerLocation])
async def list_locations(
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    return engine.list_worker_locations(actor)
