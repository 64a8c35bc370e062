import pytest

from groundwater_chatbot.conversation.extractors import (
    export_format,
    is_reset_command,
    parse_years,
    wants_higher_level,
)

KNOWN = [2023, 2024]


def test_both_beats_literal_year():
    assert parse_years("show me both 2023 data", KNOWN) == [2023, 2024]


def test_latest_is_empty_sentinel():
    assert parse_years("latest please", KNOWN) == []


def test_latest_beats_everything():
    assert parse_years("latest, or both, or 2023", KNOWN) == []


def test_no_signal_is_none():
    assert parse_years("no idea", KNOWN) is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2024", [2024]),
        ("data for 2024 and 2023", [2023, 2024]),
        ("2023 2023 2023", [2023]),
        ("ALL years", [2023, 2024]),
        ("Both", [2023, 2024]),
        ("2019", None),
    ],
)
def test_parse_years(text, expected):
    assert parse_years(text, KNOWN) == expected


def test_all_years_follow_known_set():
    assert parse_years("all", [2024, 2022, 2023]) == [2022, 2023, 2024]
    assert parse_years("2022", [2022, 2023]) == [2022]


def test_default_known_years_are_used():
    assert parse_years("latest") == []
    assert parse_years("nothing here") is None


@pytest.mark.parametrize(
    "text",
    ["State Level please", "no district", "skip", "SKIP it", "just the state level"],
)
def test_wants_higher_level(text):
    assert wants_higher_level(text) is True


@pytest.mark.parametrize("text", ["Patna", "district level", "Bihar 2024"])
def test_does_not_want_higher_level(text):
    assert wants_higher_level(text) is False


def test_reset_commands_match_whole_message():
    assert is_reset_command("reset")
    assert is_reset_command("  Start Over ")
    assert not is_reset_command("reset everything")
    assert not is_reset_command("please start over")


def test_export_format():
    assert export_format("export csv") == "csv"
    assert export_format(" Export JSON ") == "json"
    assert export_format("export pdf") is None
    assert export_format("please export csv") is None
