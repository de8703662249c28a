"""Test helpers: fake distributions, archives and HTTP transports."""

import zipfile
from pathlib import Path

import httpx

DISTRIBUTION_URL = "https://downloads.example.test/ftp/python/3.10.9/python-3.10.9-embed-amd64.zip"

DISTRIBUTION_ENTRIES = {
    "python.exe": b"MZ fake interpreter",
    "python310.dll": b"MZ fake dll",
    "python310.zip": b"PK fake stdlib",
    "python310._pth": b"python310.zip\n.\n\n# Uncomment to run site.main() automatically\n#import site\n",
}

WHEEL_ENTRIES = {
    "mypkg/__init__.py": b"VALUE = 1\n",
    "mypkg/core.py": b"def answer():\n    return 42\n",
    "mypkg-1.0.dist-info/METADATA": b"Metadata-Version: 2.1\nName: mypkg\nVersion: 1.0\n",
}


def make_zip(path: Path, entries: dict[str, bytes]) -> Path:
    """Write a zip archive with the given name -> content entries."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return path


def snapshot(directory: Path) -> dict[str, bytes]:
    """Relative path -> bytes for every file under directory."""
    return {str(p.relative_to(directory)): p.read_bytes() for p in sorted(directory.rglob("*")) if p.is_file()}


class CountingTransport(httpx.AsyncBaseTransport):
    """Serves fixed bodies per URL and records every request."""

    def __init__(self, bodies: dict[str, bytes]):
        self.bodies = bodies
        self.requests: list[str] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url not in self.bodies:
            return httpx.Response(404, request=request)
        return httpx.Response(200, content=self.bodies[url], request=request)
