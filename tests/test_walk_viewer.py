import pytest

from conftest import FakeDriver, FakeElement
from edubase_export.errors import ContentUnchangedError, ViewerError
from edubase_export.viewer_walker.walk_viewer import ViewerWalker, resolve_page_count


class FakeViewer:
    """Serves a scripted sequence of SVG reads and counts next-page clicks."""

    def __init__(self, svg_reads, has_next=True):
        self.svg_reads = list(svg_reads)
        self.has_next = has_next
        self.clicks = 0

    def __call__(self, js, *args):
        if "XMLSerializer" in js:
            return self.svg_reads.pop(0)
        if "el.src" in js:
            return f"https://cdn.example.org/bg/{self.clicks + 1}.jpg"
        if "dispatchEvent" in js:
            if self.has_next:
                self.clicks += 1
            return self.has_next
        raise AssertionError(f"unexpected script {js!r}")


def make_walker(tmp_path, viewer, sleeps, **kwargs):
    kwargs.setdefault("max_content_retries", 3)
    return ViewerWalker(FakeDriver(script=viewer), tmp_path, sleep=sleeps.append, **kwargs)


def test_walk_saves_each_page_and_advances(tmp_path):
    viewer = FakeViewer(["<svg>1</svg>", "<svg>2</svg>", "<svg>3</svg>"])
    sleeps = []
    seen = []
    saved = make_walker(tmp_path, viewer, sleeps).walk(3, progress=seen.append)

    assert saved == [1, 2, 3]
    assert seen == [1, 2, 3]
    assert viewer.clicks == 3
    assert sleeps == [1.5, 1.5, 1.5]
    assert "<svg" in (tmp_path / "page-2.svg").read_text(encoding="utf-8")
    html = (tmp_path / "page-2.html").read_text(encoding="utf-8")
    assert "https://cdn.example.org/bg/2.jpg" in html
    assert "./page-2.svg" in html


def test_unchanged_content_is_reread(tmp_path):
    viewer = FakeViewer(["<svg>1</svg>", "<svg>1</svg>", "<svg>1</svg>", "<svg>2</svg>"])
    sleeps = []
    saved = make_walker(tmp_path, viewer, sleeps, delay=0.1, retry_delay=1.0).walk(2)
    assert saved == [1, 2]
    assert sleeps == [0.1, 0.1, 1.0, 1.0]
    assert ">2<" in (tmp_path / "page-2.svg").read_text(encoding="utf-8")


def test_unchanged_content_gives_up(tmp_path):
    viewer = FakeViewer(["<svg>1</svg>"] + ["<svg>1</svg>"] * 4)
    walker = make_walker(tmp_path, viewer, [], max_content_retries=3)
    with pytest.raises(ContentUnchangedError) as err:
        walker.walk(2)
    assert err.value.page == 2
    assert err.value.attempts == 3


def test_missing_svg_is_skipped_but_viewer_advances(tmp_path):
    viewer = FakeViewer(["<svg>1</svg>", None, "<svg>3</svg>"])
    saved = make_walker(tmp_path, viewer, []).walk(3)
    assert saved == [1, 3]
    assert viewer.clicks == 3
    assert not (tmp_path / "page-2.svg").exists()


def test_missing_next_control(tmp_path):
    viewer = FakeViewer(["<svg>1</svg>"], has_next=False)
    with pytest.raises(ViewerError):
        make_walker(tmp_path, viewer, []).walk(1)


def test_from_params_reads_walker_section(tmp_path):
    walker_params = {
        "out_dir": str(tmp_path), "delay_seconds": 2.0, "retry_delay_seconds": 0.25,
        "max_content_retries": 5, "page_height": 100, "page_width": 50,
    }
    w = ViewerWalker.from_params(FakeDriver(), walker_params)
    assert w.delay == 2.0
    assert w.max_content_retries == 5
    assert w.out_dir == str(tmp_path)


def test_resolve_page_count_prefers_explicit():
    assert resolve_page_count(FakeDriver(), 12) == 12


def test_resolve_page_count_reads_pagination():
    label = FakeElement(text="416")
    d = FakeDriver(elements={"#pagination > div > span": label})
    assert resolve_page_count(d, None) == 416
