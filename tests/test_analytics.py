"""
Tests for suidra.analytics — validation, vote tallies, sorting and filtering.
"""

from __future__ import annotations

import pytest

from suidra.analytics import (
    calculate_voting_stats,
    filter_forms,
    relative_time,
    shorten_id,
    sort_forms,
    truncate_text,
    validate_add_question,
    validate_create_form,
)
from suidra.models import Form, Question


def make_question(votes, options=None, title="Q", description="D"):
    options = options or [f"Option {i}" for i in range(len(votes))]
    return Question(id="0xq", title=title, description=description, options=options, votes=votes)


def make_form(form_id, title="Form", description="Desc", questions=None):
    return Form(id=form_id, title=title, description=description, author="0xa", questions=questions or [])


# ─── Validation ──────────────────────────────────────────────────────


class TestValidateCreateForm:
    @pytest.mark.parametrize(
        "title,description",
        [
            ("Lunch", "Where do we eat?"),
            ("x" * 100, "y" * 500),
            ("  padded  ", " text "),
        ],
    )
    def test_valid_inputs(self, title, description):
        result = validate_create_form(title, description)
        assert result.is_valid
        assert result.errors == []

    def test_collects_every_problem(self):
        result = validate_create_form("", "   ")
        assert not result.is_valid
        assert result.errors == ["Form title is required", "Form description is required"]

    def test_length_limits(self):
        result = validate_create_form("x" * 101, "y" * 501)
        assert "Form title must be less than 100 characters" in result.errors
        assert "Form description must be less than 500 characters" in result.errors

    def test_none_is_treated_as_missing(self):
        result = validate_create_form(None, None)
        assert len(result.errors) == 2


class TestValidateAddQuestion:
    def test_valid_question(self):
        result = validate_add_question("Pizza?", "Pick", ["Yes", "No"])
        assert result.is_valid

    @pytest.mark.parametrize("count", [0, 1, 11, 15])
    def test_option_count_out_of_range(self, count):
        options = [f"opt {i}" for i in range(count)]
        result = validate_add_question("T", "D", options)
        assert not result.is_valid
        assert result.errors

    def test_duplicates_ignore_case_and_whitespace(self):
        result = validate_add_question("T", "D", ["Yes", " yes ", "No"])
        assert result.errors == ["Options must be unique"]

    def test_empty_option_reports_position(self):
        result = validate_add_question("T", "D", ["Yes", "  ", "No"])
        assert "Option 2 cannot be empty" in result.errors

    def test_long_option(self):
        result = validate_add_question("T", "D", ["a" * 101, "b"])
        assert result.errors == ["Option 1 must be less than 100 characters"]

    def test_reports_at_least_one_error_per_violated_rule(self):
        # missing title, missing description, too few options, empty option
        result = validate_add_question("", "", [""])
        assert not result.is_valid
        assert len(result.errors) >= 4

    def test_question_title_limit(self):
        assert validate_add_question("t" * 200, "D", ["a", "b"]).is_valid
        assert not validate_add_question("t" * 201, "D", ["a", "b"]).is_valid


# ─── Voting Stats ────────────────────────────────────────────────────


class TestVotingStats:
    def test_basic_tally(self):
        stats = calculate_voting_stats(make_question([3, 1, 0]))
        assert stats.total_votes == 4
        assert stats.percentages == [75, 25, 0]
        assert stats.winning_option.index == 0
        assert stats.winning_option.option == "Option 0"
        assert stats.winning_option.percentage == 75

    def test_no_votes(self):
        stats = calculate_voting_stats(make_question([0, 0]))
        assert stats.total_votes == 0
        assert stats.percentages == [0, 0]
        assert stats.winning_option is None

    def test_tie_goes_to_first_max(self):
        stats = calculate_voting_stats(make_question([1, 4, 4]))
        assert stats.winning_option.index == 1

    def test_is_pure(self):
        question = make_question([2, 2, 1])
        assert calculate_voting_stats(question) == calculate_voting_stats(question)
        assert question.votes == [2, 2, 1]


# ─── Sorting & Filtering ─────────────────────────────────────────────


class TestSortForms:
    def test_title_is_non_decreasing_and_stable(self):
        forms = [
            make_form("0x3", title="beta"),
            make_form("0x1", title="alpha"),
            make_form("0x2", title="beta"),
        ]
        result = sort_forms(forms, "title")
        assert [f.title for f in result] == ["alpha", "beta", "beta"]
        assert [f.id for f in result if f.title == "beta"] == ["0x3", "0x2"]

    def test_newest_and_oldest_use_id_order(self):
        forms = [make_form("0x2"), make_form("0x3"), make_form("0x1")]
        assert [f.id for f in sort_forms(forms, "newest")] == ["0x3", "0x2", "0x1"]
        assert [f.id for f in sort_forms(forms, "oldest")] == ["0x1", "0x2", "0x3"]

    def test_most_questions(self):
        q = make_question([0, 0])
        forms = [make_form("0x1"), make_form("0x2", questions=[q, q]), make_form("0x3", questions=[q])]
        assert [f.id for f in sort_forms(forms, "mostQuestions")] == ["0x2", "0x3", "0x1"]

    def test_does_not_mutate_input(self):
        forms = [make_form("0x2"), make_form("0x1")]
        sort_forms(forms, "oldest")
        assert [f.id for f in forms] == ["0x2", "0x1"]

    def test_unknown_key_keeps_input_order(self):
        forms = [make_form("0x2"), make_form("0x3"), make_form("0x1")]
        result = sort_forms(forms, "popular")
        assert [f.id for f in result] == ["0x2", "0x3", "0x1"]
        assert result is not forms


class TestFilterForms:
    def test_blank_term_is_a_no_op(self):
        forms = [make_form("0x1"), make_form("0x2")]
        assert filter_forms(forms, "") is forms
        assert filter_forms(forms, "   ") is forms

    def test_matches_form_and_question_text(self):
        forms = [
            make_form("0x1", title="Team Lunch"),
            make_form("0x2", description="Quarterly OKRs"),
            make_form("0x3", questions=[make_question([0, 0], title="Best SUSHI place")]),
            make_form("0x4", title="Unrelated"),
        ]
        assert [f.id for f in filter_forms(forms, "lunch")] == ["0x1"]
        assert [f.id for f in filter_forms(forms, " okrs ")] == ["0x2"]
        assert [f.id for f in filter_forms(forms, "sushi")] == ["0x3"]


# ─── Display Helpers ─────────────────────────────────────────────────


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("hello world", 6) == "hello..."


def test_shorten_id():
    assert shorten_id("0x1234") == "0x1234"
    assert shorten_id("0x1234567890abcdef") == "0x12...cdef"


def test_relative_time():
    now = 1_700_000_000_000
    assert relative_time(now - 5_000, now) == "Just now"
    assert relative_time(now - 60_000, now) == "1 minute ago"
    assert relative_time(now - 3 * 3_600_000, now) == "3 hours ago"
    assert relative_time(now - 2 * 86_400_000, now) == "2 days ago"
