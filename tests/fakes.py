"""Dobles de requests para los tests (sin red)."""

from typing import Dict, List, Optional, Union

import requests


class FakeResponse:
    def __init__(
        self,
        text: str = "",
        status_code: int = 200,
        reason: str = "OK",
        url: str = "",
    ):
        self.text = text
        self.content = text.encode("utf-8")
        self.status_code = status_code
        self.reason = reason
        self.url = url
        self.closed = False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} {self.reason}")

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


Route = Union[FakeResponse, Exception]


class FakeSession:
    """
    Responde según la URL pedida (sin query string cuando se pasa `params`).
    Guarda cada llamada en `calls` como (url, kwargs).
    """

    def __init__(self, routes: Optional[Dict[str, Route]] = None):
        self.routes: Dict[str, Route] = dict(routes or {})
        self.calls: List[tuple] = []
        self.headers: Dict[str, str] = {}

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if url not in self.routes:
            return FakeResponse("", status_code=404, reason="Not Found", url=url)
        route = self.routes[url]
        if isinstance(route, Exception):
            raise route
        if not route.url:
            route.url = url
        return route

    def urls(self) -> List[str]:
        return [url for url, _ in self.calls]


def episode_html(script: str) -> str:
    return f"""
    <html><body>
      <div class="l-page">
        <div class="l-column-left">
          <script>{script}</script>
        </div>
      </div>
    </body></html>
    """


def listing_html(cards: List[tuple]) -> str:
    """cards: lista de (href, label)."""
    items = "".join(
        f'<a class="c-card-16x9" href="{href}">'
        f'<span class="c-card-16x9__title">Show</span>'
        f'<span class="c-card-16x9__subtitle">{label}</span></a>'
        for href, label in cards
    )
    return f"<html><body><section>{items}</section></body></html>"
