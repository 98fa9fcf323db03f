"""
The catalog of known dezoomers, and the automatic dezoomer that tries them all.
"""

import logging
from collections.abc import Callable

from dezoomify.exceptions import (
    DezoomerError,
    NeedsData,
    NoCompatibleDezoomer,
    NoSuchDezoomer,
)

from .base import Dezoomer, ProbeInput, ZoomLevel

log = logging.getLogger(__name__)

# Name -> factory, in priority order
_REGISTRY: dict[str, Callable[[], Dezoomer]] = {}


def register_dezoomer(cls: type[Dezoomer]) -> type[Dezoomer]:
    """Class decorator adding a dezoomer to the catalog."""
    if not cls.name:
        raise ValueError(f"{cls.__name__} must define a name")
    _REGISTRY[cls.name] = cls
    return cls


def dezoomer_names(include_auto: bool = True) -> list[str]:
    names = list(_REGISTRY)
    return [AutoDezoomer.name, *names] if include_auto else names


def all_dezoomers(include_auto: bool = True) -> list[Dezoomer]:
    """Returns fresh instances of every registered dezoomer, in priority order."""
    dezoomers = [factory() for factory in _REGISTRY.values()]
    if include_auto:
        dezoomers.insert(0, AutoDezoomer())
    return dezoomers


def find_dezoomer(name: str) -> Dezoomer:
    for dezoomer in all_dezoomers(include_auto=True):
        if dezoomer.name == name:
            return dezoomer
    raise NoSuchDezoomer(name, dezoomer_names())


class AutoDezoomer(Dezoomer):
    """
    Tries every real dezoomer in priority order on the same input.

    The first one that yields at least one zoom level wins. Documents fetched
    for one dezoomer are remembered and handed to the next ones that ask for
    the same URI, so every URI is downloaded at most once.
    """

    name = "auto"

    def __init__(self, dezoomers: list[Dezoomer] | None = None):
        self._pending = (
            list(dezoomers)
            if dezoomers is not None
            else all_dezoomers(include_auto=False)
        )
        self._errors: list[tuple[str, Exception]] = []
        self._fetched: dict[str, bytes] = {}
        self._original: ProbeInput | None = None

    def probe(self, data: ProbeInput) -> list[ZoomLevel]:
        if self._original is None:
            self._original = data
        if data.contents is not None:
            self._fetched[data.uri] = data.contents

        while self._pending:
            dezoomer = self._pending[0]
            try:
                levels = self._probe_with_cache(dezoomer, data)
            except NeedsData:
                raise
            except DezoomerError as e:
                log.debug(f"Dezoomer '{dezoomer.name}' failed: {e}")
                self._errors.append((dezoomer.name, e))
            else:
                if levels:
                    log.info(f"Found {len(levels)} zoom levels using '{dezoomer.name}'")
                    return levels
                self._errors.append(
                    (dezoomer.name, DezoomerError("No zoom level found"))
                )
            self._pending.pop(0)
            data = self._original

        raise NoCompatibleDezoomer(self._errors)

    def _probe_with_cache(self, dezoomer: Dezoomer, data: ProbeInput) -> list[ZoomLevel]:
        while True:
            try:
                return dezoomer.probe(data)
            except NeedsData as e:
                if e.uri not in self._fetched:
                    raise
                log.debug(f"Reusing already fetched data from {e.uri}")
                data = data.with_contents(e.uri, self._fetched[e.uri])
