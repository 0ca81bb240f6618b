# dormfix/routers/locations.py
from fastapi import APIRouter, Depends

from dormfix.dependencies import get_location_store
from dormfix.schemas.location import LocationCreate
from dormfix.services.locations import LocationStore

router = APIRouter(prefix="/api/locations", tags=["Locations"])


@router.get("")
async def list_locations(store: LocationStore = Depends(get_location_store)):
    locations = await store.list()
    return {"success": True, "count": len(locations), "locations": locations}


# Used for seeding the building picker
@router.post("", status_code=201)
async def create_location(data: LocationCreate, store: LocationStore = Depends(get_location_store)):
    location = await store.create(data.name, data.type, data.address)
    return {"success": True, "location": location}
