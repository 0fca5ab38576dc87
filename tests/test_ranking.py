"""
Tests for the leaderboard ranking engine.
"""

import copy

from studylabs.ranking.engine import (
    assign_rank_numbers,
    compare_completion,
    compare_overrides,
    is_qualifying,
    participant_key,
    rank,
    rank_dataframe,
)


def make(name, badges=0, games=0, email=None, completed=None, url=""):
    return {
        "Name": name,
        "Email": email if email is not None else f"{name.lower()}@x.com",
        "SkillBadges": badges,
        "ArcadeGames": games,
        "ProfileURL": url,
        "CompletionDate": completed,
    }


def names(ranked):
    return [p["Name"] for p in ranked]


class TestIsQualifying:
    """Tests for the completion predicate."""

    def test_exact_counts_qualify(self):
        assert is_qualifying(make("a", 19, 1))

    def test_more_badges_do_not_qualify(self):
        assert not is_qualifying(make("a", 20, 1))

    def test_more_games_do_not_qualify(self):
        assert not is_qualifying(make("a", 19, 2))

    def test_zero_counts(self):
        assert not is_qualifying(make("a", 0, 0))


class TestParticipantKey:
    """Tests for identity key fallbacks."""

    def test_uses_email(self):
        assert participant_key(make("Amy", email=" AMY@X.com "), 0) == "amy@x.com"

    def test_falls_back_to_name(self):
        assert participant_key(make("Amy", email=""), 0) == "Amy"

    def test_falls_back_to_position(self):
        assert participant_key(make("", email=""), 4) == "row-5"


class TestRankContract:
    """Tests for the rank() contract."""

    def test_empty_input(self):
        assert rank([], {}) == []

    def test_overrides_default_to_none(self):
        assert names(rank([make("Bob", 1), make("Amy", 2)])) == ["Amy", "Bob"]

    def test_is_permutation(self):
        people = [make(f"p{i}", i % 5, i % 3) for i in range(20)]
        ranked = rank(people, {"p3@x.com": 2})
        assert len(ranked) == len(people)
        assert sorted(map(id, ranked)) == sorted(map(id, people))

    def test_does_not_mutate_inputs(self):
        people = [make("Bob", 3), make("Amy", 5, email="AMY@X.COM")]
        overrides = {"bob@x.com": 1}
        before = (copy.deepcopy(people), dict(overrides))

        rank(people, overrides)

        assert (people, overrides) == before

    def test_returns_new_list(self):
        people = [make("Amy", 1)]
        assert rank(people, {}) is not people

    def test_duplicates_are_kept(self):
        people = [make("Amy", 1), make("Amy", 1)]
        assert len(rank(people, {})) == 2

    def test_stable_for_full_ties(self):
        first = make("Same", 5, 1, email="first@x.com")
        second = make("Same", 5, 1, email="second@x.com")
        assert rank([first, second], {}) == [first, second]
        assert rank([second, first], {}) == [second, first]


class TestOverrides:
    """Tests for fixed-rank precedence."""

    def test_lower_override_first_regardless_of_score(self):
        people = [make("Top", 30, 5), make("Low", 0, 0)]
        ranked = rank(people, {"top@x.com": 2, "low@x.com": 1})
        assert names(ranked) == ["Low", "Top"]

    def test_pinned_beats_unpinned(self):
        people = [make("Star", 19, 1, completed="2024-01-01"), make("Pinned", 0, 0)]
        assert names(rank(people, {"pinned@x.com": 50})) == ["Pinned", "Star"]

    def test_override_keys_are_case_insensitive(self):
        people = [make("Amy", 1), make("Bob", 0)]
        assert names(rank(people, {" BOB@X.COM ": 1})) == ["Bob", "Amy"]

    def test_participant_without_email_is_never_pinned(self):
        people = [make("Amy", 5), make("Nomail", 0, email="")]
        ranked = rank(people, {"nomail": 1, "": 1})
        assert names(ranked) == ["Amy", "Nomail"]

    def test_dangling_overrides_are_ignored(self):
        people = [make("Bob", 1), make("Amy", 2)]
        assert names(rank(people, {"ghost@x.com": 1})) == ["Amy", "Bob"]

    def test_equal_overrides_keep_input_order(self):
        people = [make("Low", 0), make("High", 30)]
        ranked = rank(people, {"low@x.com": 1, "high@x.com": 1})
        assert names(ranked) == ["Low", "High"]

    def test_compare_overrides_tier(self):
        a = {"override": 1}
        b = {"override": None}
        assert compare_overrides(a, b) == -1
        assert compare_overrides(b, a) == 1
        assert compare_overrides(b, b) == 0


class TestCompletionFastPath:
    """Tests for qualifying completion ordering."""

    def test_qualifier_beats_higher_score(self):
        people = [make("Grinder", 20, 3), make("Finisher", 19, 1, completed="2024-01-05")]
        assert names(rank(people, {})) == ["Finisher", "Grinder"]

    def test_earlier_completion_first(self):
        people = [
            make("Later", 19, 1, completed="2024-02-01"),
            make("Earlier", 19, 1, completed="2024-01-15"),
        ]
        assert names(rank(people, {})) == ["Earlier", "Later"]

    def test_day_first_and_iso_dates_are_equivalent(self):
        iso = [make("Bob", 19, 1, completed="2024-01-05"), make("Amy", 19, 1, completed="2024-01-06")]
        day_first = [make("Bob", 19, 1, completed="05/01/2024"), make("Amy", 19, 1, completed="06-01-2024")]
        assert names(rank(iso, {})) == names(rank(day_first, {})) == ["Bob", "Amy"]

    def test_same_date_falls_through_to_name(self):
        people = [make("Bob", 19, 1, completed="2024-01-05"), make("Amy", 19, 1, completed="2024-01-05")]
        assert names(rank(people, {})) == ["Amy", "Bob"]

    def test_unparseable_date_loses_to_dated_qualifier(self):
        people = [make("Undated", 19, 1, completed="soon"), make("Dated", 19, 1, completed="2024-03-01")]
        assert names(rank(people, {})) == ["Dated", "Undated"]

    def test_undated_qualifier_uses_score(self):
        people = [make("Undated", 19, 1), make("Grinder", 25, 0)]
        assert names(rank(people, {})) == ["Grinder", "Undated"]

    def test_date_on_non_qualifier_is_ignored(self):
        people = [make("Dated", 10, 0, completed="2024-01-01"), make("Better", 12, 0)]
        assert names(rank(people, {})) == ["Better", "Dated"]

    def test_compare_completion_tier(self):
        from datetime import date

        early = {"completion": date(2024, 1, 1)}
        late = {"completion": date(2024, 2, 1)}
        none = {"completion": None}
        assert compare_completion(early, late) == -1
        assert compare_completion(none, late) == 1
        assert compare_completion(none, none) == 0


class TestScoreFallback:
    """Tests for score-based ordering."""

    def test_badges_descending(self):
        people = [make("A", 3), make("B", 10), make("C", 7)]
        assert names(rank(people, {})) == ["B", "C", "A"]

    def test_games_break_badge_ties(self):
        people = [make("A", 10, 1), make("B", 10, 4)]
        assert names(rank(people, {})) == ["B", "A"]

    def test_name_breaks_score_ties(self):
        people = [make("Bob", 15, 2), make("Amy", 15, 2)]
        assert names(rank(people, {})) == ["Amy", "Bob"]

    def test_zero_scores(self):
        people = [make("Zed", 0, 0), make("Ann", 0, 0)]
        assert names(rank(people, {})) == ["Ann", "Zed"]


class TestRankNumbers:
    """Tests for positional rank numbers."""

    def test_contiguous_even_with_ties(self):
        ranked = rank([make("A", 5), make("B", 5), make("C", 1)], {})
        assert [n for n, _ in assign_rank_numbers(ranked)] == [1, 2, 3]

    def test_rank_dataframe_columns(self):
        df = rank_dataframe([make("Bob", 1), make("Amy", 19, 1, completed="2024-01-05")], {"bob@x.com": 1})
        assert list(df["rank"]) == [1, 2]
        assert list(df["Name"]) == ["Bob", "Amy"]
        assert list(df["qualified"]) == [False, True]
        assert df["fixed_rank"].iloc[0] == 1
        assert df["fixed_rank"].isna().iloc[1]

    def test_rank_dataframe_empty(self):
        df = rank_dataframe([], {})
        assert df.empty
        assert "rank" in df.columns

    def test_rank_not_written_to_records(self):
        people = [make("Amy", 1)]
        rank_dataframe(people, {})
        assert "rank" not in people[0]
