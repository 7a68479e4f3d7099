"""Tests for role priority lists and rank lookup."""
import math

import pytest
from pydantic import ValidationError

from roles import UNRANKED, RolePriorityIndex, RolePriorityLists


class TestRolePriorityLists:
    """Validation of the role priority input."""

    def test_defaults_are_empty(self):
        lists = RolePriorityLists()
        assert lists.shield == []
        assert lists.heal == []
        assert lists.frontline == []

    def test_normalizes_names(self):
        lists = RolePriorityLists(shield=[" Zhongli ", "", "Zhongli", "Layla"], heal=None)
        assert lists.shield == ["Zhongli", "Layla"]
        assert lists.heal == []

    def test_from_mapping(self):
        lists = RolePriorityLists.model_validate({"shield": ["Zhongli"], "frontline": ["Hu Tao", "Xingqiu"]})
        assert lists.shield == ["Zhongli"]
        assert lists.heal == []
        assert lists.frontline == ["Hu Tao", "Xingqiu"]

    def test_rejects_plain_string(self):
        with pytest.raises(ValidationError):
            RolePriorityLists(shield="Zhongli")

    @pytest.mark.parametrize("value", [5, 2.5, True, {"Zhongli": 1}])
    def test_rejects_non_list(self, value):
        with pytest.raises(ValidationError):
            RolePriorityLists.model_validate({"shield": value})


class TestRolePriorityIndex:
    """Rank lookups."""

    def setup_method(self):
        self.index = RolePriorityIndex(RolePriorityLists(
            shield=["Zhongli", "Layla"],
            heal=["Bennett", "Kokomi"],
            frontline=["Hu Tao", "Bennett"],
        ))

    def test_ranks(self):
        assert self.index.shield_rank("Zhongli") == 0
        assert self.index.shield_rank("Layla") == 1
        assert self.index.heal_rank("Kokomi") == 1
        assert self.index.frontline_rank("Bennett") == 1

    def test_unranked_is_infinite(self):
        assert self.index.shield_rank("Hu Tao") == UNRANKED
        assert math.isinf(self.index.heal_rank("Zhongli"))
        assert self.index.frontline_rank("Zhongli") == UNRANKED

    def test_role_membership(self):
        assert self.index.is_shield("Layla") is True
        assert self.index.is_shield("Bennett") is False
        assert self.index.is_healer("Bennett") is True

    def test_highest_shield_only_considers_party(self):
        assert self.index.highest_shield(["Hu Tao", "Layla", "Bennett"]) == "Layla"
        assert self.index.highest_shield(["Layla", "Zhongli"]) == "Zhongli"
        assert self.index.highest_shield(["Hu Tao", "Bennett"]) is None

    def test_highest_heal(self):
        assert self.index.highest_heal(["Kokomi", "Hu Tao"]) == "Kokomi"
        assert self.index.highest_heal(["Kokomi", "Bennett"]) == "Bennett"

    def test_frontline_falls_back_to_party_order(self):
        index = RolePriorityIndex()
        party = ["Xingqiu", "Hu Tao", "Zhongli"]
        assert index.frontline_rank("Hu Tao", party) == 1
        assert index.frontline_rank("Xingqiu", party) == 0
        assert index.frontline_rank("Albedo", party) == UNRANKED

    def test_missing_lists_give_no_roles(self):
        index = RolePriorityIndex(None)
        assert index.highest_shield(["Zhongli"]) is None
        assert index.highest_heal(["Bennett"]) is None
