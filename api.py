"""
FastAPI server for the CEP lookup race.

Every request races BrasilAPI against ViaCEP and answers with whichever
responds first, inside a 1 second budget. The shared HTTP client lives for
the lifetime of the process and is closed on shutdown.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from cep_lookup.config import Config
from cep_lookup.errors import RequestMalformed
from cep_lookup.providers import create_http_client, create_providers
from cep_lookup.resolver import CepResolver
from cep_lookup.responses import map_outcome, parse_cep_path

config = Config.from_env()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=getattr(logging, config.log_level, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)
# httpx logs every upstream request at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger("api")

# ---------------------------------------------------------------------------
# Process-wide HTTP client + resolver (built in lifespan)
# ---------------------------------------------------------------------------
http_client: Optional[httpx.AsyncClient] = None
resolver: Optional[CepResolver] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared HTTP client on startup, close it on shutdown."""
    global http_client, resolver
    http_client = create_http_client(config)
    resolver = CepResolver(create_providers(http_client, config), config)
    logger.info(
        f"Resolver ready: {', '.join(p.origin for p in resolver.providers)} "
        f"(timeout {config.race_timeout_s:g}s, policy {config.race_policy.value})"
    )

    yield

    resolver = None
    await http_client.aclose()
    http_client = None
    logger.info("Shutdown complete.")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="CEP Lookup API",
    description="Resolve a Brazilian CEP by racing BrasilAPI against ViaCEP.",
    version="1.0.0",
    lifespan=lifespan,
    redirect_slashes=False,
)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------
class CepResponse(BaseModel):
    origem: str = Field(..., description="Provider that answered first: brasilapi or viacep")
    data: dict = Field(..., description="Address fields as named by that provider")


class HealthResponse(BaseModel):
    status: str
    resolver_ready: bool
    uptime_seconds: float


_start_time = time.time()


def _text(status_code: int, message: str) -> PlainTextResponse:
    return PlainTextResponse(message + "\n", status_code=status_code)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@app.get("/health", response_model=HealthResponse)
async def health():
    """Liveness check."""
    return HealthResponse(
        status="ok" if resolver else "loading",
        resolver_ready=resolver is not None,
        uptime_seconds=round(time.time() - _start_time, 1),
    )


@app.get("/cep", response_model=CepResponse)
@app.get("/cep/{rest:path}", response_model=CepResponse)
async def lookup_cep(request: Request):
    """
    Look up the address for a CEP.

    200 with ``{"origem", "data"}`` from the first provider to answer,
    408 when neither answers in time, 500 when the first answer is a failure,
    400 when the path is not exactly ``/cep/{cep}``.
    """
    try:
        cep = parse_cep_path(request.url.path)
    except RequestMalformed as e:
        return _text(400, str(e))

    if not resolver:
        raise HTTPException(status_code=503, detail="Resolver is not ready yet.")

    outcome = await resolver.resolve(cep)
    status_code, body = map_outcome(outcome)
    if isinstance(body, dict):
        return CepResponse(**body)
    return _text(status_code, body)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=config.port)
