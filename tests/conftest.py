import asyncio
import inspect
import logging
import sys
from pathlib import Path

import pytest


_ASYNCIO_MARK_ATTR = "_stdout_mcp_asyncio_marker"


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "asyncio: run the marked test using an asyncio event loop",
    )


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: list[pytest.Item]
) -> None:
    del session, config
    for item in items:
        if item.get_closest_marker("asyncio"):
            setattr(item, _ASYNCIO_MARK_ATTR, True)


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> object:
    if not getattr(pyfuncitem, _ASYNCIO_MARK_ATTR, False):
        return None
    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        argnames = pyfuncitem._fixtureinfo.argnames
        coroutine = test_func(**{name: pyfuncitem.funcargs[name] for name in argnames})
        loop.run_until_complete(coroutine)
        loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return True


@pytest.fixture(autouse=True)
def _reset_relay_logger():
    relay_logger = logging.getLogger("stdout_mcp")
    handlers = list(relay_logger.handlers)
    level = relay_logger.level
    propagate = relay_logger.propagate
    yield
    relay_logger.handlers[:] = handlers
    relay_logger.setLevel(level)
    relay_logger.propagate = propagate


async def _settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Return a coroutine function that lets scheduled callbacks and tasks run."""
    return _settle


class FakeOpener:
    """PipeOpener handing out in-memory streams the test feeds by hand."""

    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error
        self.opened: list[str] = []
        self.readers: list[asyncio.StreamReader] = []

    async def open(self, path: str):
        from stdout_mcp.pipe.stream import PipeStream

        self.opened.append(path)
        if self.error is not None:
            raise self.error
        reader = asyncio.StreamReader()
        self.readers.append(reader)
        return PipeStream(reader)


class FakeCreator:
    """NamedPipeCreator that touches a regular file instead of running a command."""

    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error
        self.calls: list[str] = []

    async def create_named_pipe(self, path: str) -> None:
        self.calls.append(path)
        if self.error is not None:
            raise self.error
        Path(path).touch()


class FakeObserver:
    def __init__(self, schedule_error: BaseException | None = None) -> None:
        self.schedule_error = schedule_error
        self.scheduled: list[tuple[object, str, bool]] = []
        self.started = False
        self.stopped = False
        self.joined = False

    def schedule(self, handler, path, recursive=False):
        if self.schedule_error is not None:
            raise self.schedule_error
        self.scheduled.append((handler, path, recursive))

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def join(self, timeout=None):
        self.joined = True


@pytest.fixture
def fake_opener():
    return FakeOpener()


@pytest.fixture
def fake_creator():
    return FakeCreator()


@pytest.fixture
def fake_observer():
    return FakeObserver()
