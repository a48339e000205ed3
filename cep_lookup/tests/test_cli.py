import asyncio
import json
import sys

import httpx
import pytest

import run_lookup
from cep_lookup.config import Config, RacePolicy
from cep_lookup.errors import UpstreamStatusError
from cep_lookup.models import VIACEP, Success, TimedOut, UpstreamFailure, ViaCepAddress

SE = ViaCepAddress("01001-000", "SP", "São Paulo", "Sé", "Praça da Sé")


def test_render_success_envelope():
    out = json.loads(run_lookup.render(Success(VIACEP, SE)))
    assert out["origem"] == "viacep"
    assert out["data"]["logradouro"] == "Praça da Sé"


def test_render_normalized():
    out = json.loads(run_lookup.render(Success(VIACEP, SE), normalized=True))
    assert out["data"] == {
        "postal_code": "01001-000",
        "state": "SP",
        "city": "São Paulo",
        "district": "Sé",
        "street": "Praça da Sé",
    }


def test_render_failures_as_text():
    assert run_lookup.render(TimedOut(1.0)) == "Erro: tempo de espera excedido"
    failure = UpstreamFailure(VIACEP, UpstreamStatusError(VIACEP, 400, "Bad Request"))
    assert run_lookup.render(failure, normalized=True) == "Erro: requisição falhou: 400 Bad Request"


def test_resolve_once_uses_a_fresh_client(monkeypatch):
    async def handler(request):
        if request.url.host == "viacep.com.br":
            return httpx.Response(200, json={"cep": "01001-000", "uf": "SP"})
        await asyncio.sleep(0.3)
        return httpx.Response(503)

    monkeypatch.setattr(
        run_lookup,
        "create_http_client",
        lambda config: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    config = Config(race_timeout_s=0.5)

    outcome = asyncio.run(run_lookup.resolve_once(config, "01001000"))

    assert isinstance(outcome, Success)
    assert outcome.origin == "viacep"
    assert outcome.address.uf == "SP"


@pytest.fixture
def upstream(monkeypatch):
    """Route the CLI's HTTP client through a MockTransport; records the policy used."""
    state = {"handler": None, "policy": None}

    monkeypatch.setattr(
        run_lookup,
        "create_http_client",
        lambda config: httpx.AsyncClient(transport=httpx.MockTransport(state["handler"])),
    )
    resolve_once = run_lookup.resolve_once

    async def recording_resolve_once(config, cep):
        state["policy"] = config.race_policy
        return await resolve_once(config, cep)

    monkeypatch.setattr(run_lookup, "resolve_once", recording_resolve_once)
    return state


def run_main(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["run_lookup.py", *args])
    with pytest.raises(SystemExit) as exc:
        run_lookup.main()
    return exc.value.code


def test_main_exits_zero_on_success(monkeypatch, capsys, upstream):
    async def handler(request):
        if request.url.host == "brasilapi.com.br":
            return httpx.Response(200, json={"cep": "01001000", "state": "SP", "city": "São Paulo"})
        await asyncio.sleep(0.3)
        return httpx.Response(200, json={"cep": "01001-000"})

    upstream["handler"] = handler

    assert run_main(monkeypatch, "--normalized", "01001000") == 0
    out = json.loads(capsys.readouterr().out)
    assert out["origem"] == "brasilapi"
    assert out["data"]["postal_code"] == "01001000"
    assert out["data"]["city"] == "São Paulo"
    assert upstream["policy"] is RacePolicy.FIRST_ARRIVAL


def test_main_exits_one_on_first_failure(monkeypatch, capsys, upstream):
    async def handler(request):
        if request.url.host == "brasilapi.com.br":
            return httpx.Response(503)
        await asyncio.sleep(0.2)
        return httpx.Response(200, json={"cep": "01001-000"})

    upstream["handler"] = handler

    assert run_main(monkeypatch, "01001000") == 1
    assert capsys.readouterr().out.startswith("Erro: requisição falhou: 503")


def test_main_exits_one_on_timeout(monkeypatch, capsys, upstream):
    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json={})

    upstream["handler"] = handler

    assert run_main(monkeypatch, "01001000") == 1
    assert capsys.readouterr().out.strip() == "Erro: tempo de espera excedido"


def test_first_success_flag_switches_policy(monkeypatch, capsys, upstream):
    async def handler(request):
        if request.url.host == "brasilapi.com.br":
            return httpx.Response(503)
        await asyncio.sleep(0.05)
        return httpx.Response(200, json={"cep": "01001-000", "uf": "SP"})

    upstream["handler"] = handler

    assert run_main(monkeypatch, "--first-success", "01001000") == 0
    assert upstream["policy"] is RacePolicy.FIRST_SUCCESS
    assert json.loads(capsys.readouterr().out)["origem"] == "viacep"
