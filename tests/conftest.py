import json
import logging
import os
import sys

import pytest

# Adjust path to find the modules at the repository root
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

from config import ConfigLoader  # noqa: E402
from logger import LOGGER_NAME  # noqa: E402
from paths import CONFIG_ENV, resource_file  # noqa: E402


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Copy of the bundled config.json that tests may edit freely."""
    data = json.loads(resource_file("config.json").read_text(encoding="utf-8"))
    path = tmp_path / "config.json"

    def write(**sections):
        for name, values in sections.items():
            data.setdefault(name, {}).update(values)
        path.write_text(json.dumps(data), encoding="utf-8")
        ConfigLoader.reset()
        return path

    write()
    monkeypatch.setenv(CONFIG_ENV, str(path))
    ConfigLoader.reset()
    yield write
    ConfigLoader.reset()


@pytest.fixture(autouse=True)
def reset_gasbox_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
