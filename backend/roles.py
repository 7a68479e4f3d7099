"""
Role priority lists and rank lookup.

Three ordered lists of actor names (shield, heal, frontline). An actor's rank
in a list is its 0-based index; actors missing from a list are unranked,
which sorts after every ranked actor.
"""

import math
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, field_validator

UNRANKED = math.inf


class RolePriorityLists(BaseModel):
    """Role priority input as loaded from the role priority file."""
    shield: List[str] = []
    heal: List[str] = []
    frontline: List[str] = []

    @field_validator('shield', 'heal', 'frontline', mode='before')
    @classmethod
    def normalize_names(cls, v):
        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            raise ValueError('role list must be a list of actor names')
        names = []
        for name in v:
            name = str(name).strip()
            # first occurrence wins, later duplicates would only shadow it
            if name and name not in names:
                names.append(name)
        return names


def _rank_map(names: Sequence[str]) -> Dict[str, int]:
    return {name: idx for idx, name in enumerate(names)}


class RolePriorityIndex:
    """Precomputed ranks for O(1) lookup."""

    def __init__(self, lists: Optional[RolePriorityLists] = None):
        self.lists = lists or RolePriorityLists()
        self._shield = _rank_map(self.lists.shield)
        self._heal = _rank_map(self.lists.heal)
        self._frontline = _rank_map(self.lists.frontline)

    def shield_rank(self, name: str) -> float:
        return self._shield.get(name, UNRANKED)

    def heal_rank(self, name: str) -> float:
        return self._heal.get(name, UNRANKED)

    def frontline_rank(self, name: str, party: Sequence[str] = ()) -> float:
        """Rank in the frontline list.

        With no frontline list configured, the party enumeration order is used.
        """
        if not self._frontline:
            for idx, member in enumerate(party):
                if member == name:
                    return idx
            return UNRANKED
        return self._frontline.get(name, UNRANKED)

    def is_shield(self, name: str) -> bool:
        return name in self._shield

    def is_healer(self, name: str) -> bool:
        return name in self._heal

    def highest_shield(self, party: Sequence[str]) -> Optional[str]:
        return self._best(party, self._shield)

    def highest_heal(self, party: Sequence[str]) -> Optional[str]:
        return self._best(party, self._heal)

    @staticmethod
    def _best(party: Sequence[str], ranks: Dict[str, int]) -> Optional[str]:
        ranked = [name for name in party if name in ranks]
        if not ranked:
            return None
        return min(ranked, key=lambda name: ranks[name])
