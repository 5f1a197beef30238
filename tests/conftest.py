import io

import pytest
from PIL import Image
from selenium.common.exceptions import NoSuchElementException


def png_bytes(width=40, height=60, color="white"):
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, "PNG")
    return buf.getvalue()


class FakeElement:
    def __init__(self, text="", attrs=None, displayed=True, children=None, png=None):
        self._text = text
        self.attrs = attrs or {}
        self.displayed = displayed
        self.children = children or {}
        self.png = png
        self.clicks = 0
        self.keys = []

    @property
    def text(self):
        # a list of texts is consumed one read at a time
        if isinstance(self._text, list):
            return self._text.pop(0) if len(self._text) > 1 else self._text[0]
        return self._text

    @property
    def screenshot_as_png(self):
        return self.png

    def is_displayed(self):
        return self.displayed

    def get_attribute(self, name):
        return self.attrs.get(name)

    def find_element(self, by, selector):
        if selector not in self.children:
            raise NoSuchElementException(selector)
        return self.children[selector]

    def click(self):
        self.clicks += 1

    def clear(self):
        self.keys = []

    def send_keys(self, value):
        self.keys.append(value)


class FakeDriver:
    def __init__(self, elements=None, script=None, cdp=None, current_url="about:blank"):
        self.elements = elements or {}
        self.script = script
        self.cdp = cdp
        self.current_url = current_url
        self.visited = []
        self.cdp_calls = []
        self.quit_called = False

    def get(self, url):
        self.visited.append(url)
        self.current_url = url

    def find_element(self, by, selector):
        found = self.elements.get(selector)
        if not found:
            raise NoSuchElementException(selector)
        return found[0] if isinstance(found, list) else found

    def find_elements(self, by, selector):
        found = self.elements.get(selector, [])
        return found if isinstance(found, list) else [found]

    def execute_script(self, js, *args):
        if self.script is None:
            return "complete"
        return self.script(js, *args)

    def execute_cdp_cmd(self, cmd, cmd_args):
        self.cdp_calls.append((cmd, cmd_args))
        return self.cdp(cmd, cmd_args)

    def set_page_load_timeout(self, seconds):
        pass

    def quit(self):
        self.quit_called = True


@pytest.fixture
def no_sleep():
    calls = []
    return calls.append


@pytest.fixture
def make_png():
    return png_bytes
