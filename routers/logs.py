from typing import Annotated
from fastapi import APIRouter, Query
from utils.deps import log_service_dependency
from utils.permissions import super_admin_dependency


router = APIRouter(
    prefix="/logs",
    tags=["logs"]
)

page_query = Annotated[int, Query(ge=1)]
per_page_query = Annotated[int, Query(ge=1, le=100, alias="perPage")]


# Access and system logs span every store, so all four routes are SUPER_ADMIN only.

@router.get("/access")
async def get_access_logs(user: super_admin_dependency, service: log_service_dependency,
                          page: page_query = 1, per_page: per_page_query = 10):
    return service.get_access_logs(page, per_page)


@router.get("/access/search")
async def search_access_logs(user: super_admin_dependency, service: log_service_dependency,
                             term: str = "", page: page_query = 1, per_page: per_page_query = 10):
    """Search by IP or user email."""
    return service.search_access_logs(term, page, per_page)


@router.get("/system")
async def get_system_logs(user: super_admin_dependency, service: log_service_dependency,
                          page: page_query = 1, per_page: per_page_query = 10):
    return service.get_system_logs(page, per_page)


@router.get("/system/search")
async def search_system_logs(user: super_admin_dependency, service: log_service_dependency,
                             term: str = "", page: page_query = 1, per_page: per_page_query = 10):
    """Search by action, details or user email."""
    return service.search_system_logs(term, page, per_page)
