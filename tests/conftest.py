from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import Any

import pytest

BASE_URL = "https://management.azure.com"
FACTORY_URL = (
    f"{BASE_URL}/subscriptions/sub-1/resourceGroups/rg-data"
    "/providers/Microsoft.DataFactory/factories/adf-main"
)


def pytest_configure() -> None:
    src_root = Path(__file__).resolve().parents[1] / "src"
    sys.path.insert(0, str(src_root))


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeClient:
    """Stands in for ManagementClient; answers from a (method, url) route table.

    Unknown GETs answer 404, unknown POSTs answer 200.
    """

    def __init__(self, routes: dict[tuple[str, str], Any] | None = None):
        self.base_url = BASE_URL
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, dict[str, str] | None]] = []
        self.headers: list[dict[str, str] | None] = []
        self._lock = threading.Lock()

    def resource_url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _answer(self, method: str, url: str, default: FakeResponse) -> FakeResponse:
        answer = self.routes.get((method, url), default)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def get(self, url: str, *, params: dict[str, str] | None = None) -> FakeResponse:
        with self._lock:
            self.calls.append(("GET", url, params))
        return self._answer("GET", url, FakeResponse(404, {"error": {"code": "NotFound"}}))

    def post(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> FakeResponse:
        with self._lock:
            self.calls.append(("POST", url, params))
            self.headers.append(headers)
        return self._answer("POST", url, FakeResponse(200, {}))

    def urls(self, method: str) -> list[str]:
        return [url for m, url, _ in self.calls if m == method]


@pytest.fixture
def factory():
    from utils.targets import FactoryLocator

    return FactoryLocator("sub-1", "rg-data", "adf-main")


@pytest.fixture
def make_client():
    def _make(
        trigger_pages: list[dict[str, Any]] | None = None,
        *,
        factory_status: int = 200,
        extra_routes: dict[tuple[str, str], Any] | None = None,
    ) -> FakeClient:
        routes: dict[tuple[str, str], Any] = {
            ("GET", FACTORY_URL): FakeResponse(factory_status, {"name": "adf-main"}),
        }
        pages = trigger_pages or [{"value": []}]
        routes[("GET", f"{FACTORY_URL}/triggers")] = FakeResponse(200, pages[0])
        for page, following in zip(pages, pages[1:]):
            routes[("GET", page["nextLink"])] = FakeResponse(200, following)
        routes.update(extra_routes or {})
        return FakeClient(routes)

    return _make
