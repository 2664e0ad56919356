from __future__ import annotations

import io
import urllib.error
import urllib.request
from email.message import Message
from pathlib import Path

import pytest

import dalle.env as env_module


class FakeResponse:
    def __init__(self, data: bytes, content_type: str | None = None):
        self._data = data
        self._content_type = content_type

    def read(self) -> bytes:
        return self._data

    def info(self) -> Message:
        message = Message()
        if self._content_type is not None:
            message.add_header("Content-Type", self._content_type)
        return message

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


def http_error(url: str, status: int, body: bytes = b"") -> urllib.error.HTTPError:
    return urllib.error.HTTPError(url, status, "error", Message(), io.BytesIO(body))


class StubTransport:
    """Replacement for urllib.request.urlopen that replays queued results."""

    def __init__(self):
        self.calls: list[object] = []
        self._results: list[object] = []

    def queue(self, *results: object) -> "StubTransport":
        self._results.extend(results)
        return self

    def __call__(self, target, *args, **kwargs):
        self.calls.append(target)
        if not self._results:
            raise AssertionError(f"unexpected request to {_target_url(target)}")
        result = self._results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    @property
    def urls(self) -> list[str]:
        return [_target_url(call) for call in self.calls]


def _target_url(target) -> str:
    if isinstance(target, urllib.request.Request):
        return target.full_url
    return str(target)


@pytest.fixture()
def transport(monkeypatch) -> StubTransport:
    stub = StubTransport()
    monkeypatch.setattr(urllib.request, "urlopen", stub)
    return stub


@pytest.fixture()
def test_env_file(tmp_path, monkeypatch) -> Path:
    """Provide an isolated .env file for each test that needs the credential."""

    env_path = tmp_path / ".env"
    env_path.write_text("OPENAI_API_KEY=test-key\n")
    # register the variable so values loaded from .env are undone after the test
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.delenv("OPENAI_API_KEY")
    monkeypatch.setattr(env_module, "_DOTENV_FILE", env_path)
    return env_path
