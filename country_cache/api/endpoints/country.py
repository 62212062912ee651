from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse, JSONResponse

from country_cache.api.deps import get_config, get_refresh_service, get_repository
from country_cache.core.image_generator import existing_image_path
from country_cache.core.refresh import RefreshService
from country_cache.core.repository import CountryRepository
from country_cache.exceptions import InvalidRequestError
from country_cache.schemas import CountryRecord, ErrorResponse, RefreshResult, SortOrder

# Initialize the router
router = APIRouter(
    prefix="/countries",
    tags=["Countries"],
)

NOT_FOUND = {404: {"model": ErrorResponse}}


def _required_name(name: str) -> str:
    if not name or not name.strip():
        raise InvalidRequestError("name parameter is required")
    return name


@router.post(
    "/refresh",
    response_model=RefreshResult,
    responses={503: {"model": ErrorResponse}},
    summary="Fetch all countries and exchange rates, then cache them.",
)
async def refresh_countries(service: RefreshService = Depends(get_refresh_service)):
    return await service.refresh()


@router.get(
    "",
    response_model=List[CountryRecord],
    summary="Retrieve countries with optional filtering and sorting.",
)
def read_countries(
    repository: CountryRepository = Depends(get_repository),
    region: Optional[str] = Query(None, description="Exact region, e.g. Africa"),
    currency: Optional[str] = Query(None, description="Exact currency code, e.g. NGN"),
    sort: SortOrder = Query(SortOrder.NAME),
):
    return repository.find_many(region=region, currency_code=currency, sort=sort)


@router.get("/image", responses=NOT_FOUND, summary="Serve the summary image.")
def read_summary_image(config=Depends(get_config)):
    image_path = existing_image_path(config.summary_image_path())
    if image_path is None:
        return JSONResponse(status_code=404, content={"error": "Summary image not found"})
    return FileResponse(image_path, media_type="image/png")


@router.get("/{name}", response_model=CountryRecord, responses=NOT_FOUND)
def read_country(name: str, repository: CountryRepository = Depends(get_repository)):
    """Look a country up by name, ignoring case."""
    country = repository.find_by_name(_required_name(name))
    if country is None:
        return JSONResponse(status_code=404, content={"error": "Country not found"})
    return country


@router.delete("/{name}", responses=NOT_FOUND)
def delete_country(name: str, repository: CountryRepository = Depends(get_repository)):
    if not repository.delete_by_name(_required_name(name)):
        return JSONResponse(status_code=404, content={"error": "Country not found"})
    return {"message": f"Country '{name}' deleted successfully"}
