import asyncio
import json
import logging

import typer

from redflag.sources.pool_pipeline.config.settings import LOG_LEVEL
from redflag.sources.pool_pipeline.evm.utils.orchestrator import build_pool_service
from redflag.utils.shortname import configure_logging

log = logging.getLogger(__name__)

app = typer.Typer(help="Scan the pool factory from the command line")


async def _run(service, call):
    try:
        return await call(service)
    finally:
        await service.aclose()


@app.command("pools")
def pools():
    """
    Print the most recent pools with their deployer reputation.
    """
    service = build_pool_service()
    result = asyncio.run(_run(service, lambda s: s.latest_pools()))
    typer.echo(json.dumps(result, indent=2))
    if result.get("error"):
        log.warning(f"[cli] Scan degraded: {result['error']}")


@app.command("creator")
def creator(address: str = typer.Argument(..., help="0x... deployer address")):
    """
    Print every pool a deployer created in the creator scan window.
    """
    service = build_pool_service()
    summary = asyncio.run(_run(service, lambda s: s.creator_pools(address)))
    typer.echo(json.dumps(summary.to_json(), indent=2))


def main():
    configure_logging(LOG_LEVEL)
    app()


if __name__ == "__main__":
    main()
