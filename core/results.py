# core/results.py

from dataclasses import dataclass
from typing import Union

from .errors import ProviderUnavailable
from .models import Decision

@dataclass(frozen=True)
class Success:
    decision: Decision

@dataclass(frozen=True)
class Failure:
    error: ProviderUnavailable

# What a provider adapter hands back instead of raising.
ProviderResult = Union[Success, Failure]
