from fastapi import APIRouter, Depends

from country_cache.api.deps import get_repository
from country_cache.core.repository import CountryRepository
from country_cache.schemas import StatusResponse

# Initialize the router
router = APIRouter(
    prefix="/status",
    tags=["Status"],
)


@router.get("", response_model=StatusResponse, summary="Get the last refresh time.")
def read_status(repository: CountryRepository = Depends(get_repository)):
    """
    Total number of cached countries and the time of the last successful
    refresh, or null if no refresh has completed yet.
    """
    return StatusResponse(
        total_countries=repository.count(),
        last_refreshed_at=repository.get_last_refreshed_at(),
    )
