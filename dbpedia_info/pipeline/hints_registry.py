"""
Hints registry interface used by the plugin, and an in-memory registry for
running the plugin outside an editor.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Protocol, Sequence, Tuple

from ..common.schemas import Card


class HintsRegistry(Protocol):
    """The two registry operations the plugin relies on."""

    def remove_hints_in_region(self, region: Tuple[int, int], hr_id: str, plugin_id: str) -> None:
        ...

    def add_hints(self, hr_id: str, plugin_id: str, cards: Sequence[Card]) -> None:
        ...


@dataclass
class RegisteredCard:
    hr_id: str
    plugin_id: str
    card: Card


@dataclass
class InMemoryHintsRegistry:
    """Keeps cards in a list and records every call made on it."""
    cards: List[RegisteredCard] = field(default_factory=list)
    calls: List[Tuple[str, tuple]] = field(default_factory=list)

    def remove_hints_in_region(self, region: Tuple[int, int], hr_id: str, plugin_id: str) -> None:
        self.calls.append(("remove", (tuple(region), hr_id, plugin_id)))
        start, end = region
        self.cards = [
            rc for rc in self.cards
            if not (rc.plugin_id == plugin_id and _overlaps(rc.card.location, (start, end)))
        ]

    def add_hints(self, hr_id: str, plugin_id: str, cards: Sequence[Card]) -> None:
        self.calls.append(("add", (hr_id, plugin_id, len(cards))))
        self.cards.extend(RegisteredCard(hr_id, plugin_id, c) for c in cards)

    def by_plugin(self) -> Dict[str, List[Card]]:
        out: Dict[str, List[Card]] = {}
        for rc in self.cards:
            out.setdefault(rc.plugin_id, []).append(rc.card)
        return out


def _overlaps(location: Tuple[int, int], region: Tuple[int, int]) -> bool:
    # touching spans count as overlapping so zero-width hints get cleared
    return location[0] <= region[1] and region[0] <= location[1]


__all__ = ["HintsRegistry", "InMemoryHintsRegistry", "RegisteredCard"]
