import asyncio

import pytest

from cep_lookup.config import Config
from cep_lookup.models import BRASILAPI, VIACEP, BrasilAPIAddress, ViaCepAddress


SE_BRASILAPI = BrasilAPIAddress(
    cep="01001000",
    state="SP",
    city="São Paulo",
    neighborhood="Sé",
    street="Praça da Sé",
)
SE_VIACEP = ViaCepAddress(
    cep="01001-000",
    uf="SP",
    localidade="São Paulo",
    bairro="Sé",
    logradouro="Praça da Sé",
)


class FakeProvider:
    """Answers after ``delay`` seconds with ``address`` or by raising ``error``."""

    def __init__(self, origin, delay=0.0, address=None, error=None):
        self.origin = origin
        self.label = origin
        self.delay = delay
        self.address = address
        self.error = error
        self.calls = []
        self.cancelled = False
        self.finished = False

    async def lookup(self, cep):
        self.calls.append(cep)
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        self.finished = True
        if self.error is not None:
            raise self.error
        return self.address


@pytest.fixture
def brasilapi():
    def make(delay=0.0, address=SE_BRASILAPI, error=None):
        return FakeProvider(BRASILAPI, delay=delay, address=address, error=error)
    return make


@pytest.fixture
def viacep():
    def make(delay=0.0, address=SE_VIACEP, error=None):
        return FakeProvider(VIACEP, delay=delay, address=address, error=error)
    return make


@pytest.fixture
def fast_config():
    """Short race budget so timeout tests stay quick."""
    return Config(race_timeout_s=0.3)
