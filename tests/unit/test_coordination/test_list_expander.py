"""
Unit tests for the ListExpander component.

Covers team/task list splitting, marker dropping and numeric range
expansion including the range guards.
"""

import pytest

from waveops.coordination.list_expander import ListExpander
from waveops.core.error_handler import CommandParseError, ParseErrorCode


@pytest.mark.unit
class TestListExpander:
    """Test suite for team and task list expansion"""

    @pytest.fixture
    def expander(self):
        return ListExpander(max_range_size=10)

    def test_team_numeric_range_expands_inclusively(self, expander):
        assert expander.expand_teams("1-3") == ["team-1", "team-2", "team-3"]

    def test_task_numeric_range_expands_to_numbers(self, expander):
        assert expander.expand_tasks("1-3") == ["1", "2", "3"]

    def test_plain_team_names_get_prefix(self, expander):
        assert expander.expand_teams("alpha, beta gamma") == ["team-alpha", "team-beta", "team-gamma"]

    def test_marker_words_are_dropped(self, expander):
        teams = expander.expand_teams("alpha, team beta and teams gamma & delta")
        assert teams == ["team-alpha", "team-beta", "team-gamma", "team-delta"]

    def test_prefixed_and_hyphenated_names_pass_through(self, expander):
        assert expander.expand_teams("team-qa, front-end") == ["team-qa", "front-end"]

    def test_quotes_and_hash_are_stripped(self, expander):
        assert expander.expand_teams('"alpha", #beta') == ["team-alpha", "team-beta"]
        assert expander.expand_tasks('task #123, "W1.T001"') == ["123", "W1.T001"]

    def test_order_and_duplicates_preserved(self, expander):
        assert expander.expand_teams("beta, alpha, beta") == ["team-beta", "team-alpha", "team-beta"]

    def test_task_ids_kept_verbatim(self, expander):
        assert expander.expand_tasks("tasks W1.T001 and W1.T002") == ["W1.T001", "W1.T002"]

    def test_empty_fragment(self, expander):
        assert expander.expand_teams("") == []
        assert expander.expand_tasks("  ") == []

    def test_descending_range_rejected(self, expander):
        with pytest.raises(CommandParseError) as exc_info:
            expander.expand_teams("5-1")

        assert exc_info.value.code == ParseErrorCode.INVALID_RANGE
        assert "5-1" in exc_info.value.message

    def test_oversized_range_rejected(self, expander):
        with pytest.raises(CommandParseError) as exc_info:
            expander.expand_tasks("1-11")

        assert exc_info.value.code == ParseErrorCode.INVALID_RANGE
        assert exc_info.value.context["max_range_size"] == 10

    def test_range_at_limit_allowed(self, expander):
        assert len(expander.expand_tasks("1-10")) == 10

    def test_range_bounds_beyond_integer_conversion_limit(self, expander):
        with pytest.raises(CommandParseError) as exc_info:
            expander.expand_teams("1-" + "1" * 5000)

        assert exc_info.value.code == ParseErrorCode.INVALID_RANGE

    def test_ampersand_separates_items(self, expander):
        assert expander.expand_teams("alpha&beta") == ["team-alpha", "team-beta"]
