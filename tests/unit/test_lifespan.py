import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from taxplan.lifespan import build_application_lifespan


def test_lifespan_populates_and_clears_state(monkeypatch, fresh_settings):
    monkeypatch.setenv("TAXPLAN_STATE_FLAT_RATE", "0.04")
    seen = []

    async def on_start(app):
        seen.append(("start", app.state.state_policy.rate))

    def on_stop(app):
        seen.append(("stop", app.state.app_label))

    app = FastAPI(lifespan=build_application_lifespan("test-app", startup_hook=on_start, shutdown_hook=on_stop))
    with TestClient(app):
        assert app.state.settings.state_flat_rate == app.state.state_policy.rate
        assert app.state.log_handler is None
    assert [s[0] for s in seen] == ["start", "stop"]
    assert str(seen[0][1]) == "0.04"
    assert not hasattr(app.state, "settings")


def test_lifespan_file_logging(monkeypatch, tmp_path, caplog, fresh_settings):
    caplog.set_level(logging.INFO, logger="taxplan")
    monkeypatch.setenv("TAXPLAN_LOG_TO_FILE", "1")
    monkeypatch.setenv("TAXPLAN_LOG_DIR", str(tmp_path))
    app = FastAPI(lifespan=build_application_lifespan("filelog"))
    with TestClient(app):
        handler = app.state.log_handler
        assert isinstance(handler, logging.FileHandler)
        assert handler in logging.getLogger("taxplan").handlers
    assert handler not in logging.getLogger("taxplan").handlers
    assert (tmp_path / "filelog.log").exists()
    assert "Startup complete" in (tmp_path / "filelog.log").read_text(encoding="utf-8")
