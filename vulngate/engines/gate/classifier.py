"""Ecosystem classifier: map an artifact path to the scanner that handles it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from vulngate.engines.gate.models import Ecosystem

if TYPE_CHECKING:
    from vulngate.core.config import GateSettings

# Evaluated in order; the suffixes are disjoint so the order only reads well.
_SUFFIXES: tuple[tuple[tuple[str, ...], Ecosystem], ...] = (
    ((".jar",), Ecosystem.MAVEN),
    ((".tgz",), Ecosystem.NPM),
    ((".whl", ".tar.gz", ".zip", ".egg"), Ecosystem.PYPI),
)


def classify(path: str | None) -> Ecosystem:
    """Return the ecosystem for *path* based on its file suffix."""
    if not path:
        return Ecosystem.UNSUPPORTED
    for suffixes, ecosystem in _SUFFIXES:
        if path.endswith(suffixes):
            return ecosystem
    return Ecosystem.UNSUPPORTED


@dataclass(frozen=True)
class Scannable:
    ecosystem: Ecosystem


@dataclass(frozen=True)
class Disabled:
    """Recognised ecosystem whose scanning is switched off by configuration."""

    ecosystem: Ecosystem


@dataclass(frozen=True)
class Unsupported:
    pass


Route = Union[Scannable, Disabled, Unsupported]


def route(path: str | None, settings: GateSettings) -> Route:
    """Classify *path* and apply the per-ecosystem enable flags."""
    ecosystem = classify(path)
    if ecosystem is Ecosystem.UNSUPPORTED:
        return Unsupported()
    if not settings.is_enabled(ecosystem):
        return Disabled(ecosystem)
    return Scannable(ecosystem)
