import runpy

import uvicorn

from config.settings import settings


def test_health(api):
    assert api.get("/health").json() == {"status": "ok"}


def test_running_the_module_starts_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    monkeypatch.setattr(settings, "PORT", 8123)

    runpy.run_module("main", run_name="__main__")

    [(args, kwargs)] = calls
    assert args == ("main:app",)
    assert kwargs["host"] == settings.HOST
    assert kwargs["port"] == 8123
    assert kwargs["log_level"] == settings.LOG_LEVEL.lower()
