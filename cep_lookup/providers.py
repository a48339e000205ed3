"""Upstream address providers — BrasilAPI and ViaCEP behind one async contract."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, List

import httpx

from .config import Config
from .errors import UpstreamDecodeError, UpstreamStatusError, UpstreamTransportError
from .models import BRASILAPI, VIACEP, BrasilAPIAddress, ProviderAddress, ViaCepAddress

logger = logging.getLogger(__name__)


class AddressProvider(ABC):
    """
    One upstream CEP lookup service.

    Subclasses only supply the origin name, a URL template and a parser for
    the provider's JSON shape. Every failure surfaces from ``lookup`` as an
    ``UpstreamError`` subclass; cancellation (race lost or deadline hit) is
    propagated untouched so the caller can tell the two apart.
    """

    origin: str = ""
    label: str = ""

    def __init__(self, client: httpx.AsyncClient, url_template: str, user_agent: str = ""):
        self.client = client
        self.url_template = url_template
        self.user_agent = user_agent

    def url_for(self, cep: str) -> str:
        return self.url_template.format(cep=cep)

    async def lookup(self, cep: str) -> ProviderAddress:
        """Fetch and decode the address for ``cep``."""
        url = self.url_for(cep)
        headers = {"Accept": "application/json"}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent

        t0 = time.monotonic()
        try:
            resp = await self.client.get(url, headers=headers)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            elapsed_ms = int((time.monotonic() - t0) * 1000)
            logger.debug(f"{self.label}: {cep} -> transport error {e!r} ({elapsed_ms}ms)")
            raise UpstreamTransportError(self.origin, e) from e
        elapsed_ms = int((time.monotonic() - t0) * 1000)

        if resp.status_code != 200:
            logger.debug(f"{self.label}: {cep} -> HTTP {resp.status_code} ({elapsed_ms}ms)")
            raise UpstreamStatusError(self.origin, resp.status_code, resp.reason_phrase)

        try:
            payload = resp.json()
        except ValueError as e:
            raise UpstreamDecodeError(self.origin, e) from e

        address = self.parse(cep, payload)
        logger.debug(f"{self.label}: {cep} -> ok ({elapsed_ms}ms)")
        return address

    @abstractmethod
    def parse(self, cep: str, payload: Any) -> ProviderAddress:
        """Decode a provider payload, raising UpstreamDecodeError on bad shapes."""
        ...


class BrasilAPIProvider(AddressProvider):
    """BrasilAPI CEP v1. Unknown CEPs come back as HTTP 404."""

    origin = BRASILAPI
    label = "BrasilAPI"

    def parse(self, cep: str, payload: Any) -> BrasilAPIAddress:
        try:
            return BrasilAPIAddress.from_payload(payload)
        except TypeError as e:
            raise UpstreamDecodeError(self.origin, e) from e


class ViaCepProvider(AddressProvider):
    """ViaCEP. Unknown CEPs come back as HTTP 200 with ``{"erro": true}`` and decode empty."""

    origin = VIACEP
    label = "ViaCep"

    def parse(self, cep: str, payload: Any) -> ViaCepAddress:
        if isinstance(payload, dict) and payload.get("erro") in (True, "true"):
            logger.debug(f"{self.label}: {cep} -> erro flag set, no address fields")
        try:
            return ViaCepAddress.from_payload(payload)
        except TypeError as e:
            raise UpstreamDecodeError(self.origin, e) from e


def create_providers(client: httpx.AsyncClient, config: Config) -> List[AddressProvider]:
    """Build the two racing providers sharing one HTTP client."""
    return [
        BrasilAPIProvider(client, config.brasilapi_url, user_agent=config.user_agent),
        ViaCepProvider(client, config.viacep_url, user_agent=config.user_agent),
    ]


def create_http_client(config: Config) -> httpx.AsyncClient:
    """HTTP client shared by the providers; the owner must close it."""
    return httpx.AsyncClient(timeout=config.http_timeout_s, follow_redirects=True)

