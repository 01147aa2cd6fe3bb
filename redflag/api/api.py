import logging
from functools import lru_cache

from eth_utils import is_address
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from redflag.sources.pool_pipeline.evm.utils.orchestrator import PoolQueryService, build_pool_service

log = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def get_pool_service() -> PoolQueryService:
    # one service (and so one result cache) per process
    return build_pool_service()


@router.get("/")
def read_root():
    return {"message": "Welcome to the redflag pool monitor API!"}


@router.get("/pools")
async def get_pools(service: PoolQueryService = Depends(get_pool_service)):
    try:
        return await service.latest_pools()
    except Exception:
        log.exception("Error fetching pools")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch pools"})


@router.get("/creator/{address}/pools")
async def get_creator_pools(address: str, service: PoolQueryService = Depends(get_pool_service)):
    if not is_address(address):
        raise HTTPException(status_code=400, detail=f"Invalid address: {address}")
    try:
        summary = await service.creator_pools(address.lower())
        return summary.to_json()
    except Exception:
        log.exception(f"Error fetching creator pools for {address}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch creator pools"})
