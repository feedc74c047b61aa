from .session_state import SessionState, SettingsSessionState
from .settings import LLMProviderSettings, Settings, get_config_dir, get_settings

__all__ = [
    "LLMProviderSettings",
    "SessionState",
    "Settings",
    "SettingsSessionState",
    "get_config_dir",
    "get_settings",
]
