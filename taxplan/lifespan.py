from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncContextManager

from fastapi import FastAPI

from taxplan.config import Settings, get_settings

LifecycleHook = Callable[[FastAPI], Awaitable[None] | None]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def _open_log_sink(logger: logging.Logger, settings: Settings, app_label: str) -> logging.Handler | None:
    if not settings.log_to_file:
        return None
    sink_dir = Path(settings.log_dir)
    try:
        sink_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning("File logging disabled; cannot create %s: %s", sink_dir, exc)
        return None
    handler = logging.FileHandler(sink_dir / f"{app_label}.log", encoding="utf-8")
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return handler


async def _run_hook(hook: LifecycleHook | None, app: FastAPI) -> None:
    if hook is None:
        return
    try:
        result = hook(app)
        if inspect.isawaitable(result):
            await result  # type: ignore[func-returns-value]
    except Exception:  # pragma: no cover
        logging.getLogger("taxplan").exception("Lifecycle hook %r failed", hook)


def build_application_lifespan(
    app_label: str,
    *,
    startup_hook: LifecycleHook | None = None,
    shutdown_hook: LifecycleHook | None = None,
) -> Callable[[FastAPI], AsyncContextManager[None]]:
    base_logger = logging.getLogger("taxplan")

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        settings = get_settings()
        logger = base_logger.getChild(app_label)
        log_handler = _open_log_sink(base_logger, settings, app_label)

        app.state.settings = settings
        app.state.state_policy = settings.state_policy()
        app.state.log_handler = log_handler
        app.state.app_label = app_label

        logger.info(
            "Startup complete: state_flat_rate=%s max_amount=%s log_to_file=%s",
            settings.state_flat_rate,
            settings.max_amount,
            settings.log_to_file,
        )

        try:
            await _run_hook(startup_hook, app)
            yield
        finally:
            await _run_hook(shutdown_hook, app)
            logger.info("Planner %s stopped", app_label)
            if log_handler is not None:
                base_logger.removeHandler(log_handler)
                log_handler.close()
            for attr in ("settings", "state_policy", "log_handler", "app_label"):
                if hasattr(app.state, attr):
                    delattr(app.state, attr)

    return _lifespan
