"""Request path parsing and Outcome -> HTTP response mapping."""

import logging
from typing import Tuple, Union

from .errors import RequestMalformed
from .models import Success, TimedOut, UpstreamFailure

logger = logging.getLogger(__name__)

USAGE_MESSAGE = "Uso correto: /cep/{cep}"
TIMEOUT_MESSAGE = "Erro: tempo de espera excedido"
UNEXPECTED_MESSAGE = "Erro interno: tipo inesperado de resposta"

Body = Union[dict, str]


def parse_cep_path(path: str) -> str:
    """Extract the CEP from ``/cep/{cep}``.

    The path must split into exactly three parts with a non-empty code, so
    ``/cep``, ``/cep/`` and ``/cep/123/extra`` are all rejected.
    """
    parts = path.split("/")
    if len(parts) != 3 or parts[2] == "":
        raise RequestMalformed(USAGE_MESSAGE)
    return parts[2]


def map_outcome(outcome) -> Tuple[int, Body]:
    """Translate a race Outcome into (status_code, body).

    Success bodies are the JSON envelope ``{"origem", "data"}`` with the
    provider's own field names; every other body is plain text.
    """
    if isinstance(outcome, Success):
        return 200, {"origem": outcome.origin, "data": outcome.address.to_dict()}
    if isinstance(outcome, TimedOut):
        return 408, TIMEOUT_MESSAGE
    if isinstance(outcome, UpstreamFailure):
        return 500, f"Erro: {outcome.error}"

    logger.error(f"Unexpected race outcome: {outcome!r}")
    return 500, UNEXPECTED_MESSAGE
