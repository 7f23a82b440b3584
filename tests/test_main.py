"""Tests for the command-line interface."""

from pathlib import Path

from listing_search.main import build_filters, create_argument_parser, format_results, main
from listing_search.models import LocationMode, SortStrategy


DATA_PATH = str(Path(__file__).resolve().parent.parent / "data" / "marketplace.json")


def test_argument_parsing():
    args = create_argument_parser().parse_args([
        "cleaning", "--category", "Cleaning", "--category", "Beauty",
        "--max-price", "10000", "--city", "Douala", "--urgent",
        "--mode", "either", "--sort", "price-asc",
    ])
    filters = build_filters(args)

    assert filters.query == "cleaning"
    assert filters.categories == frozenset({"Cleaning", "Beauty"})
    assert filters.price_range.minimum == 0
    assert filters.price_range.maximum == 10000
    assert filters.location.city == "Douala"
    assert filters.availability.urgent_required is True
    assert filters.availability.location_modes == frozenset({LocationMode.EITHER})
    assert filters.sort_by is SortStrategy.PRICE_ASC


def test_search_sample_data(capsys):
    exit_code = main(["cleaning", "--data", DATA_PATH])
    output = capsys.readouterr().out

    assert exit_code == 0
    assert "Home Cleaning" in output
    assert "Deep Cleaning Service" in output
    assert "Leak Repair" not in output
    # Inactive listings and listings of inactive providers never show up
    assert "Physics Crash Course" not in output
    assert "Garden Maintenance" not in output


def test_search_sample_data_with_breakdown(capsys):
    exit_code = main(["braids", "--data", DATA_PATH, "--verbose", "--limit", "1"])
    output = capsys.readouterr().out

    assert exit_code == 0
    assert "Knotless Braids" in output
    assert "text=" in output


def test_no_matches(capsys):
    assert main(["gardening", "--data", DATA_PATH]) == 0
    assert "No matches found." in capsys.readouterr().out


def test_missing_data_file(tmp_path, capsys):
    exit_code = main(["--data", str(tmp_path / "missing.json")])

    assert exit_code == 2
    assert "temporarily unavailable" in capsys.readouterr().err


def test_invalid_price_range(capsys):
    exit_code = main(["--data", DATA_PATH, "--min-price", "500", "--max-price", "100"])

    assert exit_code == 1
    assert "Error" in capsys.readouterr().err


def test_format_results_empty():
    assert format_results([]) == "No matches found.\n"
