"""Shared fixtures for vidfetch tests."""

from pathlib import Path
from typing import Callable

import httpx
import pytest

from vidfetch.config import FetchConfig
from vidfetch.session import Session


@pytest.fixture
def config(tmp_path: Path) -> FetchConfig:
    """Non-interactive configuration rooted in a temporary directory."""
    return FetchConfig(config_dir=tmp_path / "config", yes=True, quiet=True)


@pytest.fixture
def make_session() -> Callable[..., Session]:
    """Build sessions whose requests are answered by a handler function."""
    sessions = []

    def _make(handler: Callable[[httpx.Request], httpx.Response], proxy=None) -> Session:
        client = httpx.Client(
            transport=httpx.MockTransport(handler),
            follow_redirects=True,
        )
        session = Session(proxy=proxy, client=client)
        sessions.append(session)
        return session

    yield _make

    for session in sessions:
        session.close()


PLUGIN_TEMPLATE = '''
from vidfetch.extraction import HttpStream, Single
from vidfetch.plugins.base import HandlerInfo, SiteHandler


class {name}(SiteHandler):
    url_patterns = [r"{pattern}"]
    update_urls = {update_urls!r}

    @property
    def info(self):
        return HandlerInfo(name="{name}", version="{version}")

    def extract(self, session, url, preferences):
        return Single(HttpStream("https://cdn.example.com/{name}.mp4"))
'''


def render_plugin(name: str, pattern: str = r"example\.com/watch/", version: str = "1.0.0", update_urls=()) -> str:
    """Source code of a minimal installable handler."""
    return PLUGIN_TEMPLATE.format(
        name=name,
        pattern=pattern,
        version=version,
        update_urls=list(update_urls),
    )


@pytest.fixture
def plugin_source() -> Callable[..., str]:
    """Render handler source code without writing it."""
    return render_plugin


@pytest.fixture
def write_plugin(config: FetchConfig) -> Callable[..., Path]:
    """Write a handler file into the configured plugin directory."""
    def _write(name: str, filename: str = "", **kwargs) -> Path:
        config.plugin_dir.mkdir(parents=True, exist_ok=True)
        path = config.plugin_dir / (filename or f"{name}.py")
        path.write_text(render_plugin(name, **kwargs))
        return path

    return _write
