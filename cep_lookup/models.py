"""Data models for CEP lookups."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Union

from .errors import UpstreamError

BRASILAPI = "brasilapi"
VIACEP = "viacep"


def _text(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"field '{key}' must be a string, got {type(value).__name__}")
    return value


def _require_object(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


@dataclass(frozen=True)
class Address:
    """Provider-independent view of an address."""

    postal_code: str
    state: str = ""
    city: str = ""
    district: str = ""
    street: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BrasilAPIAddress:
    cep: str
    state: str = ""
    city: str = ""
    neighborhood: str = ""
    street: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "BrasilAPIAddress":
        data = _require_object(payload)
        return cls(
            cep=_text(data, "cep"),
            state=_text(data, "state"),
            city=_text(data, "city"),
            neighborhood=_text(data, "neighborhood"),
            street=_text(data, "street"),
        )

    def normalized(self) -> Address:
        return Address(
            postal_code=self.cep,
            state=self.state,
            city=self.city,
            district=self.neighborhood,
            street=self.street,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ViaCepAddress:
    cep: str
    uf: str = ""
    localidade: str = ""
    bairro: str = ""
    logradouro: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "ViaCepAddress":
        data = _require_object(payload)
        return cls(
            cep=_text(data, "cep"),
            uf=_text(data, "uf"),
            localidade=_text(data, "localidade"),
            bairro=_text(data, "bairro"),
            logradouro=_text(data, "logradouro"),
        )

    def normalized(self) -> Address:
        return Address(
            postal_code=self.cep,
            state=self.uf,
            city=self.localidade,
            district=self.bairro,
            street=self.logradouro,
        )

    def to_dict(self) -> dict:
        return asdict(self)


ProviderAddress = Union[BrasilAPIAddress, ViaCepAddress]


# ---------------------------------------------------------------------------
# Race outcomes
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Success:
    origin: str
    address: ProviderAddress


@dataclass(frozen=True)
class UpstreamFailure:
    origin: str
    error: UpstreamError


@dataclass(frozen=True)
class TimedOut:
    timeout_s: float = 0.0


Outcome = Union[Success, UpstreamFailure, TimedOut]
