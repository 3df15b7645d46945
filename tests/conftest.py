"""
Shared fixtures for the Code Preserve Translator tests.

Provides a virtual clock and a scripted completion backend so no test
touches the network or waits on real time.
"""

import pytest

from code_preserve_translator.backend import CompletionBackend
from code_preserve_translator.cache_manager import CacheManager
from code_preserve_translator.exceptions import BackendCallFailed
from code_preserve_translator.storage import MemoryStore


START_TIME = 1_700_000_000.0


class FakeClock:
    """Virtual clock; sleep advances time instead of waiting."""

    def __init__(self, start=START_TIME):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeBackend(CompletionBackend):
    """Records every call and answers with a scripted responder."""

    def __init__(self, responder=None, fail_texts=None):
        self.calls = []
        self.responder = responder or (lambda instructions, text: f"[ja] {text}")
        self.fail_texts = set(fail_texts or [])
        self.closed = False

    async def complete(self, instructions, input_text, temperature):
        self.calls.append({"instructions": instructions, "input": input_text,
                           "temperature": temperature})
        if input_text in self.fail_texts:
            raise BackendCallFailed("Service temporarily unavailable", status=503)
        return self.responder(instructions, input_text)

    async def close(self):
        self.closed = True

    @property
    def inputs(self):
        return [call["input"] for call in self.calls]


SAMPLE_HTML = (
    '<html><head><title>Guide</title><style>p { color: red; }</style></head>'
    '<body>'
    '<nav><a href="/">Home</a></nav>'
    '<article>'
    '<h1>Getting   started</h1>'
    '<p>Install the package and run the <b>server</b>.</p>'
    '<pre class="language-python"><code>def main():\n    return 0\n</code></pre>'
    '<ul><li>First step</li><li>Second   step</li></ul>'
    '<img src="diagram.png" alt="Architecture diagram" onerror="alert(1)">'
    '<div>Loose text<p>Nested paragraph.</p></div>'
    '</article>'
    '<footer>Copyright</footer>'
    '</body></html>'
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cache_manager(store, clock):
    return CacheManager(store, clock=clock)


@pytest.fixture
def sample_html():
    return SAMPLE_HTML


@pytest.fixture
def make_backend():
    """Factory for backends with a custom responder or failing inputs."""
    return FakeBackend
