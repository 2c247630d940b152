import pathlib
import sys

import pytest

p = str(pathlib.Path(__file__).resolve().parents[1])
sys.path.insert(0, p) if p not in sys.path else None

from taxplan.config import get_settings  # noqa: E402


@pytest.fixture
def fresh_settings():
    # Settings read the environment once; clear the cache around env-dependent tests.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
