"""
Chooses which zoom level to download.
"""

import logging
from collections.abc import Callable, Iterable, Sequence

from dezoomify.dezoomers.base import ZoomLevel
from dezoomify.exceptions import NoLevels
from dezoomify.models.config import SelectionPolicy
from dezoomify.models.geometry import Vec2d

log = logging.getLogger(__name__)

LevelChooser = Callable[[Sequence[ZoomLevel]], ZoomLevel]


def best_size(sizes: Iterable[Vec2d], policy: SelectionPolicy) -> Vec2d | None:
    """
    Applies the policy to a list of sizes. The first of equally large sizes wins.

    Returns None when the policy does not apply or when no size matches.
    """
    if policy.largest:
        candidates = list(sizes)
    elif policy.has_bounds:
        candidates = [s for s in sizes if policy.accepts(s.x, s.y)]
    else:
        return None
    best: Vec2d | None = None
    for size in candidates:
        if best is None or size.area() > best.area():
            best = size
    return best


def interactive_chooser(
    ask: Callable[[str], str] = input, say: Callable[[str], None] = print
) -> LevelChooser:
    """
    Builds a chooser that lists the levels and asks for one until the answer is valid.
    """

    def choose(levels: Sequence[ZoomLevel]) -> ZoomLevel:
        say("Found the following zoom levels:")
        for i, level in enumerate(levels):
            say(f"{i}. {level.name}")
        while True:
            answer = ask("Which level do you want to download? ").strip()
            try:
                index = int(answer)
            except ValueError:
                index = -1
            if 0 <= index < len(levels):
                return levels[index]
            say(f"'{answer}' is not a valid level number")

    return choose


def choose_level(
    levels: Sequence[ZoomLevel],
    policy: SelectionPolicy,
    chooser: LevelChooser | None = None,
) -> ZoomLevel:
    """
    Picks one zoom level.

    Raises:
        NoLevels: If `levels` is empty.
    """
    if not levels:
        raise NoLevels()
    if len(levels) == 1:
        return levels[0]

    sizes = [level.size_hint for level in levels if level.size_hint is not None]
    target = best_size(sizes, policy)
    if target is not None:
        for level in levels:
            if level.size_hint == target:
                log.debug(f"Selected {level.name} by policy")
                return level

    log.debug("No zoom level matched the selection policy; asking the user")
    return (chooser or interactive_chooser())(levels)
