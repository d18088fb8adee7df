from pathlib import Path

import pytest

from bookmill.settings import (
    BookConfig,
    BuildConfig,
    Code,
    ConfigError,
    Fold,
    HtmlConfig,
    Playground,
    Print,
    RustConfig,
    RustEdition,
    Search,
    TextDirection,
)


def test_book_config_from_complex_table():
    raw = {
        "title": "Some Book",
        "authors": ["Michael-F-Bryan <someone@example.com>"],
        "description": "A completely useless book",
        "multilingual": True,
        "src": "source",
        "language": "ja",
    }
    got = BookConfig.from_dict(raw)
    assert got == BookConfig(
        title="Some Book",
        authors=["Michael-F-Bryan <someone@example.com>"],
        description="A completely useless book",
        multilingual=True,
        src=Path("source"),
        language="ja",
        text_direction=None,
    )


def test_build_config_from_table():
    got = BuildConfig.from_dict(
        {"build-dir": "outputs", "create-missing": False, "use-default-preprocessors": True}
    )
    assert got == BuildConfig(
        build_dir=Path("outputs"),
        create_missing=False,
        use_default_preprocessors=True,
        extra_watch_dirs=[],
    )


def test_html_config_from_complex_table():
    raw = {
        "theme": "./themedir",
        "default-theme": "rust",
        "smart-punctuation": True,
        "google-analytics": "123456",
        "additional-css": ["./foo/bar/baz.css"],
        "git-repository-url": "https://foo.example.com/",
        "git-repository-icon": "fa-code-fork",
        "playground": {"editable": True, "editor": "ace"},
        "redirect": {
            "index.html": "overview.html",
            "nexted/page.md": "https://example.com/",
        },
    }
    expected = HtmlConfig(
        smart_punctuation=True,
        google_analytics="123456",
        additional_css=[Path("./foo/bar/baz.css")],
        theme=Path("./themedir"),
        default_theme="rust",
        playground=Playground(
            editable=True, copyable=True, copy_js=True, line_numbers=False, runnable=True
        ),
        git_repository_url="https://foo.example.com/",
        git_repository_icon="fa-code-fork",
        redirect={"index.html": "overview.html", "nexted/page.md": "https://example.com/"},
    )
    assert HtmlConfig.from_dict(raw) == expected


def test_disable_runnable():
    got = HtmlConfig.from_dict({"playground": {"runnable": False}})
    assert got.playground.runnable is False


def test_playpen_alias():
    got = HtmlConfig.from_dict({"playpen": {"editable": True}})
    assert got.playground.editable is True


@pytest.mark.parametrize(
    "value, edition",
    [
        ("2015", RustEdition.E2015),
        ("2018", RustEdition.E2018),
        ("2021", RustEdition.E2021),
        ("2024", RustEdition.E2024),
    ],
)
def test_rust_editions(value, edition):
    assert RustConfig.from_dict({"edition": value}) == RustConfig(edition=edition)


def test_invalid_rust_edition():
    with pytest.raises(ConfigError):
        RustConfig.from_dict({"edition": "1999"})


def test_invalid_language_type():
    with pytest.raises(ConfigError):
        BookConfig.from_dict({"title": "Doc", "language": ["en", "pt-br"]})


def test_invalid_title_type():
    with pytest.raises(ConfigError):
        BookConfig.from_dict({"title": 20, "language": "en"})


def test_invalid_build_dir_type():
    with pytest.raises(ConfigError):
        BuildConfig.from_dict({"build-dir": 99, "create-missing": False})


def test_fold_level_out_of_range():
    with pytest.raises(ConfigError):
        Fold.from_dict({"level": 256})


def test_bool_rejected_as_integer():
    with pytest.raises(ConfigError):
        Search.from_dict({"limit-results": True})


@pytest.mark.parametrize("value", ["ltr", "rtl"])
def test_text_direction_parsed(value):
    got = BookConfig.from_dict({"text-direction": value})
    assert got.text_direction == TextDirection(value)


def test_text_direction_none():
    assert BookConfig.from_dict({}).text_direction is None


def test_realized_text_direction():
    cfg = BookConfig()
    cfg.language = "ar"
    assert cfg.realized_text_direction() == TextDirection.RIGHT_TO_LEFT
    cfg.language = "he"
    assert cfg.realized_text_direction() == TextDirection.RIGHT_TO_LEFT
    cfg.language = "en"
    assert cfg.realized_text_direction() == TextDirection.LEFT_TO_RIGHT
    cfg.language = "ja"
    assert cfg.realized_text_direction() == TextDirection.LEFT_TO_RIGHT

    cfg.language = "ar"
    cfg.text_direction = TextDirection.LEFT_TO_RIGHT
    assert cfg.realized_text_direction() == TextDirection.LEFT_TO_RIGHT
    cfg.text_direction = TextDirection.RIGHT_TO_LEFT
    assert cfg.realized_text_direction() == TextDirection.RIGHT_TO_LEFT
    cfg.language = "en"
    cfg.text_direction = TextDirection.LEFT_TO_RIGHT
    assert cfg.realized_text_direction() == TextDirection.LEFT_TO_RIGHT
    cfg.text_direction = TextDirection.RIGHT_TO_LEFT
    assert cfg.realized_text_direction() == TextDirection.RIGHT_TO_LEFT


def test_realized_direction_without_language():
    assert BookConfig(language=None).realized_text_direction() == TextDirection.LEFT_TO_RIGHT


def test_print_config():
    html = HtmlConfig.from_dict({"print": {"enable": False}})
    assert html.print.enable is False
    assert html.print.page_break is True
    html = HtmlConfig.from_dict({"print": {"page-break": False}})
    assert html.print.enable is True
    assert html.print.page_break is False


def test_smart_punctuation_or_curly_quotes():
    assert HtmlConfig.from_dict({"smart-punctuation": True}).uses_smart_punctuation() is True
    assert HtmlConfig.from_dict({"curly-quotes": True}).uses_smart_punctuation() is True
    assert HtmlConfig().uses_smart_punctuation() is False


def test_input_404():
    assert HtmlConfig.from_dict({}).input_404 is None
    got = HtmlConfig.from_dict({"input-404": "missing.md", "output-404": "missing.html"})
    assert got.input_404 == "missing.md"


def test_theme_dir():
    assert HtmlConfig().theme_dir("/root") == Path("/root/theme")
    assert HtmlConfig(theme=Path("custom")).theme_dir("/root") == Path("/root/custom")


def test_default_book_to_dict():
    assert BookConfig().to_dict() == {
        "authors": [],
        "language": "en",
        "multilingual": False,
        "src": "src",
    }


def test_build_to_dict():
    assert BuildConfig(build_dir=Path("out")).to_dict() == {
        "build-dir": "out",
        "create-missing": True,
        "use-default-preprocessors": True,
        "extra-watch-dirs": [],
    }


def test_rust_to_dict():
    assert RustConfig().to_dict() == {}
    assert RustConfig(edition=RustEdition.E2021).to_dict() == {"edition": "2021"}


def test_book_round_trip():
    book = BookConfig(
        title="T",
        authors=["a"],
        src=Path("in"),
        text_direction=TextDirection.RIGHT_TO_LEFT,
    )
    assert BookConfig.from_dict(book.to_dict()) == book


def test_html_round_trip():
    html = HtmlConfig(
        theme=Path("t"),
        search=Search(limit_results=10),
        code=Code(hidelines={"python": "~"}),
        fold=Fold(enable=True, level=2),
        print=Print(enable=False),
        redirect={"a.html": "b.html"},
    )
    assert HtmlConfig.from_dict(html.to_dict()) == html


def test_search_defaults():
    search = Search.from_dict({})
    assert (search.limit_results, search.teaser_word_count, search.boost_title) == (30, 30, 2)
    assert search.heading_split_level == 3


def test_section_must_be_table():
    with pytest.raises(ConfigError):
        HtmlConfig.from_dict({"playground": True})


def test_from_lang_code():
    assert TextDirection.from_lang_code("yid") == TextDirection.RIGHT_TO_LEFT
    assert TextDirection.from_lang_code("de") == TextDirection.LEFT_TO_RIGHT