"""CEP lookup — race BrasilAPI against ViaCEP and answer with whichever responds first."""

from .config import Config, RacePolicy
from .models import Success, TimedOut, UpstreamFailure
from .resolver import CepResolver, RaceContext

__all__ = ["CepResolver", "Config", "RaceContext", "RacePolicy", "Success", "TimedOut", "UpstreamFailure"]
