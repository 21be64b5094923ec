import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from devevent.middleware import HTTPLogMiddleware


def _app():
    app = FastAPI()
    app.add_middleware(HTTPLogMiddleware)

    @app.get("/api/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


class TestHTTPLogMiddleware:
    def test_adds_response_time_header(self, caplog):
        client = TestClient(_app())

        with caplog.at_level(logging.DEBUG, logger="devevent.http"):
            response = client.get("/api/ping")

        assert response.headers["X-Response-Time"].endswith("ms")
        assert any("GET /api/ping -> 200" in r.getMessage() for r in caplog.records)

    def test_probe_paths_are_quiet(self, caplog):
        client = TestClient(_app())

        with caplog.at_level(logging.DEBUG, logger="devevent.http"):
            response = client.get("/health")

        assert "X-Response-Time" not in response.headers
        assert not [r for r in caplog.records if r.name == "devevent.http"]
