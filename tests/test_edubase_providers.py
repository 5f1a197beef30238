import pytest
from PIL import Image
from selenium.common.exceptions import WebDriverException

from conftest import FakeDriver, FakeElement
from edubase_export.config_parameters import params
from edubase_export.edubase.book import BookProvider, parse_total_pages
from edubase_export.edubase.library import Book, LibraryProvider
from edubase_export.edubase.login import Credentials, LoginProvider
from edubase_export.errors import LoginError, ScreenshotError, ViewerError

VIEWER = params["viewer"]


def library_item(book_id, title):
    title_el = FakeElement(text=title)
    return FakeElement(attrs={"data-last-available-version": book_id},
                       children={VIEWER["library_title_selector"]: title_el})


# ─── library ─────────────────────────────────────────────────────────────


def test_get_books_skips_unusable_items(no_sleep):
    items = [
        library_item("58216", "Mathematik 1 "),
        library_item(None, "No id"),
        library_item("abc", "Bad id"),
        library_item("7", "Physik"),
    ]
    d = FakeDriver(elements={VIEWER["library_item_selector"]: items})
    provider = LibraryProvider(d, sleep=no_sleep)
    books = provider.get_books()
    assert books == [Book(58216, "Mathematik 1"), Book(7, "Physik")]
    assert provider.books == books
    assert str(books[1]) == "Physik"


def test_get_books_empty_library(no_sleep):
    provider = LibraryProvider(FakeDriver(), wait_timeout=0, sleep=no_sleep)
    assert provider.get_books() == []


# ─── book ────────────────────────────────────────────────────────────────


def test_parse_total_pages():
    assert parse_total_pages("416") == 416
    assert parse_total_pages("of 212 pages") == 212
    assert parse_total_pages("") is None
    assert parse_total_pages(None) is None


def test_open_builds_book_url(no_sleep):
    d = FakeDriver()
    BookProvider(d, 58216, sleep=no_sleep).open(3)
    assert d.visited == ["https://app.edubase.ch/#doc/58216/3"]


def test_get_total_pages_waits_for_numbers():
    sleeps = []
    label = FakeElement(text=["", "", "212"])
    d = FakeDriver(elements={VIEWER["pagination_selector"]: label})
    assert BookProvider(d, 1, sleep=sleeps.append).get_total_pages() == 212
    assert sleeps == [0.5, 0.5, 0.5]


def test_get_total_pages_gives_up(no_sleep):
    label = FakeElement(text="")
    d = FakeDriver(elements={VIEWER["pagination_selector"]: label})
    with pytest.raises(ViewerError):
        BookProvider(d, 1, sleep=no_sleep).get_total_pages(attempts=3)


def test_get_total_pages_without_pagination(no_sleep):
    with pytest.raises(ViewerError):
        BookProvider(FakeDriver(), 1, wait_timeout=0, sleep=no_sleep).get_total_pages()


def test_next_page_clicks_button():
    button = FakeElement()
    d = FakeDriver(elements={VIEWER["next_page_selector"]: button})
    BookProvider(d, 1).next_page()
    assert button.clicks == 1


def test_next_page_missing_button():
    with pytest.raises(ViewerError):
        BookProvider(FakeDriver(), 1).next_page()


@pytest.mark.parametrize("name", ["", "page.png", "page.jpeg.txt"])
def test_screenshot_rejects_bad_filenames(name):
    with pytest.raises(ScreenshotError):
        BookProvider(FakeDriver(), 1).screenshot(name)


def test_screenshot_saves_jpeg(tmp_path, make_png):
    page = FakeElement(png=make_png(30, 40))
    d = FakeDriver(elements={VIEWER["page_selector"]: page})
    target = tmp_path / "1_1.jpeg"
    BookProvider(d, 1).screenshot(target)
    with Image.open(target) as img:
        assert img.format == "JPEG"
        assert img.size == (30, 40)


def test_screenshot_without_page_element(tmp_path):
    with pytest.raises(ScreenshotError):
        BookProvider(FakeDriver(), 1).screenshot(tmp_path / "x.jpg")


def test_get_page_text(no_sleep):
    d = FakeDriver(script=lambda js, *a: "Kapitel 1 Einleitung")
    assert BookProvider(d, 1, sleep=no_sleep).get_page_text() == "Kapitel 1 Einleitung"


def test_get_page_text_failure_is_empty(no_sleep):
    def boom(js, *args):
        raise WebDriverException("no page")

    assert BookProvider(FakeDriver(script=boom), 1, sleep=no_sleep).get_page_text() == ""


# ─── login ───────────────────────────────────────────────────────────────


def login_driver(account_visible=True):
    return FakeDriver(elements={
        "input[name='login']": FakeElement(),
        "input[name='password']": FakeElement(),
        "button[type='submit']": FakeElement(),
        VIEWER["account_selector"]: FakeElement(displayed=account_visible),
    })


def test_login_fills_form(no_sleep):
    d = login_driver()
    LoginProvider(d, sleep=no_sleep).login(Credentials("me@example.org", "s3cret"))
    assert d.visited == ["https://app.edubase.ch/#promo?popup=login"]
    assert d.find_element(None, "input[name='login']").keys == ["me@example.org"]
    assert d.find_element(None, "input[name='password']").keys == ["s3cret"]
    assert d.find_element(None, "button[type='submit']").clicks == 1


def test_login_without_account_button(no_sleep):
    provider = LoginProvider(login_driver(account_visible=False), account_timeout=0, sleep=no_sleep)
    with pytest.raises(LoginError):
        provider.login(Credentials("me@example.org", "wrong"))


def test_login_with_retry_reports_last_error():
    sleeps = []
    provider = LoginProvider(login_driver(account_visible=False), account_timeout=0,
                             sleep=sleeps.append)
    with pytest.raises(LoginError) as err:
        provider.login_with_retry(Credentials("me@example.org", "wrong"), max_retries=2)
    assert "after 2 attempts" in str(err.value)
    assert 2.0 in sleeps


def test_credentials_repr_hides_password():
    assert "s3cret" not in repr(Credentials("me@example.org", "s3cret"))


def test_manual_login_detects_account():
    d = login_driver()
    provider = LoginProvider(d, sleep=lambda s: setattr(d, "current_url", "https://app.edubase.ch/#library"))
    provider.login_manually(timeout=10, clock=iter(range(100)).__next__)


def test_manual_login_times_out():
    d = login_driver()
    ticks = iter(range(100))
    provider = LoginProvider(d, sleep=lambda s: None)
    with pytest.raises(LoginError):
        provider.login_manually(timeout=3, clock=lambda: next(ticks))
