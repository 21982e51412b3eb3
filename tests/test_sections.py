"""Tests for section grouping."""

import pytest

from i18ntrans_llms.errors import InvalidInputShapeError
from i18ntrans_llms.sections import (
    filter_sections,
    group_by_section,
    section_key,
    split_key,
    ungroup_from_sections,
)
from i18ntrans_llms.tree import flatten


class TestGrouping:
    """Tests for group_by_section() and its inverse."""

    def test_group_sample(self):
        """Keys are partitioned by their first segment."""
        flat = flatten({
            "auth": {"login": {"title": "Entrar", "button": "Login"}},
            "nav": {"home": "Home"},
        })
        assert group_by_section(flat) == {
            "auth": {"login.title": "Entrar", "login.button": "Login"},
            "nav": {"home": "Home"},
        }

    def test_top_level_leaf_uses_empty_remainder(self):
        """A key without a dot is its own section with remainder ''."""
        assert group_by_section({"title": "App"}) == {"title": {"": "App"}}

    def test_round_trip(self):
        """Ungrouping a grouped mapping gives back the same mapping."""
        flat = {
            "title": "App",
            "auth.login.title": "Entrar",
            "auth.logout": "Sair",
            "nav.home": "Home",
        }
        assert ungroup_from_sections(group_by_section(flat)) == flat

    def test_round_trip_no_trailing_dot(self):
        """Top-level keys come back without a trailing dot."""
        flat = ungroup_from_sections(group_by_section({"title": "App"}))
        assert list(flat) == ["title"]

    def test_trailing_dot_key_rejected(self):
        """'a.' would share section and remainder with 'a' and overwrite it."""
        with pytest.raises(InvalidInputShapeError, match="'a.'"):
            group_by_section({"a": "1", "a.": "2"})

    @pytest.mark.parametrize("key", ["", ".a", "a..b"])
    def test_other_empty_segments_rejected(self, key):
        """Keys with any empty segment cannot be regrouped faithfully."""
        with pytest.raises(InvalidInputShapeError):
            group_by_section({key: "x"})

    def test_section_order(self):
        """Sections appear in the order their first key was seen."""
        grouped = group_by_section({"b.x": "1", "a.y": "2", "b.z": "3"})
        assert list(grouped) == ["b", "a"]

    def test_split_and_join(self):
        """split_key and section_key are inverses."""
        assert split_key("a.b.c") == ("a", "b.c")
        assert split_key("a") == ("a", "")
        assert section_key("a", "b.c") == "a.b.c"
        assert section_key("a", "") == "a"


class TestFilterSections:
    """Tests for filter_sections()."""

    def test_keeps_only_wanted_keys(self):
        """Only entries whose full key is wanted survive."""
        grouped = group_by_section({
            "auth.title": "Entrar",
            "auth.button": "Login",
            "nav.home": "Home",
            "title": "App",
        })
        filtered = filter_sections(grouped, {"auth.button", "title"})
        assert filtered == {"auth": {"button": "Login"}, "title": {"": "App"}}

    def test_drops_empty_sections(self):
        """Sections with nothing left are removed."""
        grouped = group_by_section({"auth.title": "Entrar", "nav.home": "Home"})
        assert list(filter_sections(grouped, ["nav.home"])) == ["nav"]

    def test_nothing_wanted(self):
        """An empty key set filters everything out."""
        assert filter_sections(group_by_section({"a.b": "c"}), []) == {}
