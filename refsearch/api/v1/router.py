from fastapi import APIRouter

from refsearch.api.v1 import config, reference_search, reference_shots


api_router = APIRouter(prefix="/v1")

api_router.include_router(reference_search.router)
api_router.include_router(reference_shots.router)
api_router.include_router(config.router)
