import pytest

from app.utils import (
    build_image_url,
    is_searchable_title,
    normalize_title,
    parse_release_year,
)


def test_normalize_title_strips_packaging_noise():
    assert normalize_title("The Matrix DVD Special Edition 1999") == "the matrix special"


def test_normalize_title_drops_year_in_brackets():
    assert normalize_title("Hercules (1997) DVD") == "hercules"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Blu-ray Inception", "inception"),
        ("Harry Potter Box Set", "harry potter box"),
        ("Sunset Boulevard", "sunset boulevard"),
        ("Lord of the Rings 3-Disc Blister Pack", "lord of the rings 3"),
        ('Alien: "Director\'s Cut", Remastered', "alien director's cut remastered"),
        ("Stand By Me", "stand me"),
        ("The Lego Movie", "the lego"),
        ("Toy Story No. 3", "toy story"),
        ("2001,2002 Odyssey", "odyssey"),
        ("   Amélie    DVD   ", "amélie"),
        ("", ""),
    ],
)
def test_normalize_title_examples(raw: str, expected: str):
    assert normalize_title(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "The Matrix DVD Special Edition 1999",
        "no. no. 5 5 Rocky",
        '"dvd" Heat',
        "d,v,d set,s e t",
        "Jaws (1975) [] () dvd-disc",
        "Blade Runner : Final Cut : 2007",
    ],
)
def test_normalize_title_is_idempotent(raw: str):
    once = normalize_title(raw)
    assert normalize_title(once) == once


def test_normalize_title_keeps_set_inside_words():
    assert normalize_title("Settlers Offset") == "settlers offset"


def test_searchable_title_threshold():
    assert not is_searchable_title("up")
    assert is_searchable_title("heat")


def test_parse_release_year():
    assert parse_release_year("1997-06-13") == 1997
    assert parse_release_year("") is None
    assert parse_release_year(None) is None
    assert parse_release_year("n/a-01-01") is None


def test_build_image_url():
    assert (
        build_image_url("https://image.tmdb.org/t/p/", "w200", "/poster.jpg")
        == "https://image.tmdb.org/t/p/w200/poster.jpg"
    )
    assert build_image_url("https://image.tmdb.org/t/p", "w500", None) is None
    assert (
        build_image_url("https://image.tmdb.org/t/p/", "w500", "https://cdn.example.com/a.jpg")
        == "https://cdn.example.com/a.jpg"
    )
