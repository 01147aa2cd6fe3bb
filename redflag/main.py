# redflag/main.py
from fastapi import FastAPI
import logging
import uvicorn

from redflag.api import api
from redflag.sources.pool_pipeline.config.settings import BASE_RPC_URLS, LOG_LEVEL, POOL_FACTORY_ADDRESS
from redflag.utils.shortname import configure_logging

app = FastAPI(title="redflag")

configure_logging(LOG_LEVEL)
log = logging.getLogger(__name__)

app.include_router(api.router, prefix="/api")


@app.on_event("startup")
def log_configuration():
    log.info(f"Watching factory {POOL_FACTORY_ADDRESS} via {len(BASE_RPC_URLS)} RPC endpoint(s)")


@app.on_event("shutdown")
async def close_clients():
    if api.get_pool_service.cache_info().currsize:
        await api.get_pool_service().aclose()


def main():
    uvicorn.run("redflag.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
