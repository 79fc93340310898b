"""Category and location lookups used by the client's filters."""

from fastapi import APIRouter, Depends
from typing import List

from newsroom.storage import Storage, get_storage

router = APIRouter()


@router.get("/categories", response_model=List[str])
async def list_categories(storage: Storage = Depends(get_storage)):
    """Distinct categories in use by channels and articles."""
    return storage.list_categories()


@router.get("/locations", response_model=List[str])
async def list_locations(storage: Storage = Depends(get_storage)):
    """Distinct locations in use by channels and articles."""
    return storage.list_locations()
