"""Shared test helpers: fixture loading and a fake HTTP layer."""
from pathlib import Path
from typing import Callable, Dict, List, Union

import httpx

FIXTURES = Path(__file__).parent / "fixtures"

Route = Union[str, dict, tuple, Callable[[httpx.Request], httpx.Response]]


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


class FakeWeb:
    """
    Maps exact URLs to canned responses.

    A route value may be:
    - str: 200 text/html body
    - dict/list: 200 JSON body
    - (status, body) tuple
    - callable(request) -> httpx.Response (may raise httpx errors)

    Unknown URLs answer 404.
    """

    def __init__(self, routes: Dict[str, Route]):
        self.routes = routes
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))

        if route is None:
            return httpx.Response(404, text="<html><title>Page Not Found</title></html>")
        if callable(route):
            return route(request)
        if isinstance(route, tuple):
            status, body = route
            if isinstance(body, (dict, list)):
                return httpx.Response(status, json=body)
            return httpx.Response(status, text=body)
        if isinstance(route, (dict, list)):
            return httpx.Response(200, json=route)
        return httpx.Response(200, text=route, headers={"content-type": "text/html"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def requested_urls(self) -> List[str]:
        return [str(r.url) for r in self.requests]
