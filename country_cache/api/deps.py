from fastapi import Request

from country_cache.core.refresh import RefreshService
from country_cache.core.repository import CountryRepository


def get_repository(request: Request) -> CountryRepository:
    return request.app.state.repository


def get_refresh_service(request: Request) -> RefreshService:
    return request.app.state.refresh_service


def get_config(request: Request):
    return request.app.state.config
