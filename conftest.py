"""
Shared pytest fixtures: in-memory stand-ins for Playwright pages and elements.
"""
import asyncio

import pytest


class FakeElement:
    def __init__(self, text="", attrs=None, visible=True, value="", on_click=None, contenteditable=False,
                 checked=False):
        self.text = text
        self.attrs = dict(attrs or {})
        self.visible = visible
        self.value = value
        self.on_click = on_click
        self.contenteditable = contenteditable
        self.checked = checked
        self.events = []
        self.steps = []
        self.files = []
        self.clicks = 0
        self.focused = False

    async def inner_text(self, timeout=None):
        return self.text

    async def get_attribute(self, name):
        return self.attrs.get(name)

    async def is_visible(self):
        return self.visible

    async def focus(self):
        self.focused = True

    async def is_checked(self):
        return self.checked

    async def click(self):
        self.clicks += 1
        self.checked = not self.checked
        if self.on_click:
            self.on_click(self)

    async def evaluate(self, script, arg=None):
        if arg is None:
            return self.value
        self.steps.append(arg)
        self.value = arg["value"]
        for ev in arg["events"]:
            self.events.append((ev["type"], ev.get("inputType"), ev.get("data")))
        return self.value

    async def set_input_files(self, files):
        self.files.extend(files)


class FakeLocator:
    def __init__(self, elements):
        self.elements = list(elements)

    async def count(self):
        return len(self.elements)

    def nth(self, i):
        return self.elements[i]

    @property
    def first(self):
        return self.elements[0]

    async def get_attribute(self, name):
        return await self.first.get_attribute(name)


class FakeResponse:
    def __init__(self, status=200, body=b"", headers=None, text=""):
        self.status = status
        self.ok = 200 <= status < 300
        self._body = body
        self.headers = headers or {"content-type": "image/jpeg"}
        self._text = text

    async def body(self):
        return self._body

    async def text(self):
        return self._text


class FakeRequest:
    def __init__(self):
        self.responses = {}
        self.calls = []

    async def get(self, url, timeout=None):
        self.calls.append(url)
        resp = self.responses.get(url)
        if isinstance(resp, Exception):
            raise resp
        return resp or FakeResponse(status=404)


class FakeKeyboard:
    def __init__(self):
        self.pressed = []

    async def press(self, key):
        self.pressed.append(key)


class FakeContext:
    def __init__(self):
        self.request = FakeRequest()
        self.pages = []
        self.handlers = {}

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event, *args):
        for handler in self.handlers.get(event, []):
            handler(*args)

    async def new_page(self):
        page = FakePage(context=self)
        self.pages.append(page)
        return page


class FakePage:
    def __init__(self, url="https://www.facebook.com/marketplace/create/vehicle", elements=None,
                 body_text="", context=None):
        self.url = url
        self.elements = dict(elements or {})
        self.body_text = body_text
        self.context = context or FakeContext()
        self.keyboard = FakeKeyboard()
        self.ready_state = "complete"
        self.mutation = True
        self.closed = False
        self.handlers = {}
        self.evaluations = []
        self.visited = []

    def locator(self, selector):
        return FakeLocator(self.elements.get(selector, []))

    def add(self, selector, element):
        self.elements.setdefault(selector, []).append(element)
        return element

    async def inner_text(self, selector, timeout=None):
        return self.body_text

    async def evaluate(self, script, arg=None):
        self.evaluations.append(script)
        if "readyState" in script:
            return self.ready_state
        if "MutationObserver" in script:
            await asyncio.sleep(0)
            return self.mutation
        return None

    async def goto(self, url, wait_until=None, timeout=None):
        self.url = url
        self.visited.append(url)

    async def wait_for_load_state(self, state=None, timeout=None):
        return None

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event, *args):
        for handler in self.handlers.get(event, []):
            handler(*args)

    def is_closed(self):
        return self.closed

    async def close(self):
        self.closed = True
        self.emit("close", self)


async def no_sleep(seconds):
    await asyncio.sleep(0)


@pytest.fixture
def fake_page():
    return FakePage


@pytest.fixture
def fake_element():
    return FakeElement


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def instant_sleep():
    return no_sleep
