# tests/conftest.py

import httpx
import pytest

import create_seniman
from create_seniman import API_URL

RAW_URL = "https://raw.githubusercontent.com/senimanjs/seniman/main/examples"


def _dir(name, path):
    return {"name": name, "type": "dir", "url": f"{API_URL}/{path}", "download_url": None}


def _file(name, path):
    return {"name": name, "type": "file", "url": f"{API_URL}/{path}", "download_url": f"{RAW_URL}/{path}"}


class FakeGitHub:
    """
    In-memory stand-in for the GitHub contents API and raw file host.
    Every request URL is recorded in `requests`.
    """

    def __init__(self):
        self.listings = {
            API_URL: [
                _dir("b-app", "b-app"),
                _dir("counter", "counter"),
                _file("README.md", "README.md"),
                _dir("hello-world", "hello-world"),
            ],
            f"{API_URL}/hello-world": [
                _file("package.json", "hello-world/package.json"),
                _dir("src", "hello-world/src"),
                _file("index.js", "hello-world/index.js"),
                {"name": "linked", "type": "symlink", "url": f"{API_URL}/hello-world/linked", "download_url": None},
            ],
            f"{API_URL}/hello-world/src": [
                _file("app.js", "hello-world/src/app.js"),
                _dir("components", "hello-world/src/components"),
            ],
            f"{API_URL}/hello-world/src/components": [
                _file("button.js", "hello-world/src/components/button.js"),
            ],
        }
        self.files = {
            f"{RAW_URL}/README.md": b"# examples\n",
            f"{RAW_URL}/hello-world/package.json": b'{"name": "hello-world"}\n',
            f"{RAW_URL}/hello-world/index.js": b"import { createRoot } from 'seniman';\n",
            f"{RAW_URL}/hello-world/src/app.js": b"export default function App() {}\n",
            f"{RAW_URL}/hello-world/src/components/button.js": b"\x00\x01binary\xff",
        }
        self.failing = set()
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url in self.failing:
            return httpx.Response(500, text="boom")
        if url in self.listings:
            return httpx.Response(200, json=self.listings[url])
        if url in self.files:
            return httpx.Response(200, content=self.files[url])
        return httpx.Response(404, json={"message": "Not Found"})

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def github():
    """Provides a FakeGitHub with a small example tree."""
    return FakeGitHub()


@pytest.fixture
def patched_client(monkeypatch, github):
    """Route every client built by create-seniman through the fake GitHub."""
    monkeypatch.setattr(create_seniman, "build_client", github.client)
    return github
