"""
Pytest configuration.

Logs go to a temporary directory and settings never touch the real user
config directory.
"""
import os
import tempfile

os.environ.setdefault("DEVDICTATE_LOG_DIR", tempfile.mkdtemp(prefix="devdictate-logs-"))
# Use litellm's bundled model cost map instead of fetching it over the network
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from unittest.mock import patch

import pytest

from devdictate.core.settings import Settings, SettingsSessionState


class FakeTransformer:
    """In-memory text transformer recording every call."""

    def __init__(self, func=str.upper, available=True, error=None):
        self.func = func
        self.available = available
        self.error = error
        self.calls = []

    async def is_available(self):
        return self.available

    async def transform(self, text, prompt_template):
        self.calls.append((text, prompt_template))
        if self.error is not None:
            raise self.error
        return self.func(text)


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    with patch(
        "devdictate.core.settings.settings.get_config_dir",
        return_value=config_dir,
    ):
        yield config_dir


@pytest.fixture
def settings():
    return Settings.with_defaults()


@pytest.fixture
def session_state(settings):
    return SettingsSessionState(settings)


@pytest.fixture
def make_transformer():
    return FakeTransformer
