"""
Session state shared between the correction pipeline and the rest of the app.

The pipeline reads and writes two pieces of state: the markdown-mode flag and
the active prompt. ``SessionState`` is the narrow interface it depends on;
``SettingsSessionState`` implements it over ``Settings`` behind a lock so a UI
thread can read while a worker runs the pipeline, and also manages the prompt
library.
"""

import threading
from typing import List, Optional, Protocol, Union
from uuid import UUID

from ...utils.logger import get_logger
from ..transcript_processor.command_detector import VoiceMode
from ..transcript_processor.prompts import Prompt, get_builtin_prompts
from .settings import Settings

logger = get_logger(__name__)


class SessionState(Protocol):
    def get_markdown_mode_enabled(self) -> bool:
        ...

    def set_markdown_mode_enabled(self, enabled: bool) -> None:
        ...

    def get_active_prompt(self) -> Optional[Prompt]:
        ...

    def set_active_prompt_id(self, prompt_id: Optional[UUID]) -> None:
        ...

    def find_prompt_by_name(self, name: str) -> Optional[Prompt]:
        ...

    def list_enabled_prompts(self) -> List[Prompt]:
        ...


def _normalize_name(name: str) -> str:
    return " ".join(name.lower().split())


class SettingsSessionState:
    """
    Thread-safe session state backed by ``Settings``.

    Every accessor returns copies, so callers never hold references into the
    shared settings. With ``autosave`` enabled each mutation is written to disk.
    """

    def __init__(self, settings: Optional[Settings] = None, autosave: bool = False):
        self._settings = settings if settings is not None else Settings.with_defaults()
        self._autosave = autosave
        self._lock = threading.RLock()
        self._prompts: List[Prompt] = []

        for item in self._settings.prompts:
            try:
                self._prompts.append(Prompt.from_dict(item))
            except Exception as e:
                logger.warning(f"Skipping invalid prompt {item!r}: {e}")

    @property
    def settings(self) -> Settings:
        return self._settings

    def _persist(self) -> None:
        self._settings.prompts = [p.to_dict() for p in self._prompts]
        if self._autosave:
            try:
                self._settings.save()
            except OSError as e:
                logger.error(f"Could not save settings: {e}")

    def _index_of(self, prompt_id: UUID) -> Optional[int]:
        for i, prompt in enumerate(self._prompts):
            if prompt.id == prompt_id:
                return i
        return None

    # Markdown mode

    def get_markdown_mode_enabled(self) -> bool:
        with self._lock:
            return self._settings.markdown_mode_enabled

    def set_markdown_mode_enabled(self, enabled: bool) -> None:
        with self._lock:
            self._settings.markdown_mode_enabled = enabled
            self._persist()
        logger.info(f"Markdown mode: {'enabled' if enabled else 'disabled'}")

    def toggle_markdown_mode(self) -> bool:
        with self._lock:
            enabled = not self._settings.markdown_mode_enabled
            self.set_markdown_mode_enabled(enabled)
            return enabled

    @property
    def current_mode(self) -> VoiceMode:
        return VoiceMode.from_flag(self.get_markdown_mode_enabled())

    # Active prompt

    def get_active_prompt(self) -> Optional[Prompt]:
        with self._lock:
            active_id = self._settings.active_prompt_id
            if not active_id:
                return None
            for prompt in self._prompts:
                if str(prompt.id) == active_id:
                    return prompt.model_copy()
            return None

    def set_active_prompt_id(self, prompt_id: Optional[UUID]) -> None:
        with self._lock:
            self._settings.active_prompt_id = str(prompt_id) if prompt_id else None
            self._persist()
        logger.info(f"Active prompt changed: {prompt_id or 'none'}")

    def activate_prompt(self, prompt_id: UUID) -> bool:
        with self._lock:
            if self._index_of(prompt_id) is None:
                return False
            self.set_active_prompt_id(prompt_id)
            return True

    def activate_prompt_by_name(self, name: str) -> bool:
        with self._lock:
            prompt = self.find_prompt_by_name(name)
            if prompt is None:
                logger.warning(f"No prompt named {name!r}")
                return False
            self.set_active_prompt_id(prompt.id)
            return True

    def deactivate_prompt(self) -> None:
        self.set_active_prompt_id(None)

    def is_active(self, prompt: Prompt) -> bool:
        with self._lock:
            return self._settings.active_prompt_id == str(prompt.id)

    # Prompt library

    def list_prompts(self) -> List[Prompt]:
        with self._lock:
            return [p.model_copy() for p in self._prompts]

    def list_enabled_prompts(self) -> List[Prompt]:
        with self._lock:
            return [p.model_copy() for p in self._prompts if p.is_enabled]

    def built_in_prompts(self) -> List[Prompt]:
        with self._lock:
            return [p.model_copy() for p in self._prompts if p.is_built_in]

    def custom_prompts(self) -> List[Prompt]:
        with self._lock:
            return [p.model_copy() for p in self._prompts if not p.is_built_in]

    def find_prompt_by_name(self, name: str) -> Optional[Prompt]:
        """
        Case-insensitive lookup. The earliest enabled prompt with the name wins;
        a disabled prompt is only returned when no enabled one matches.
        """
        wanted = _normalize_name(name)
        with self._lock:
            matches = [p for p in self._prompts if _normalize_name(p.name) == wanted]
            for prompt in matches:
                if prompt.is_enabled:
                    return prompt.model_copy()
            return matches[0].model_copy() if matches else None

    def add_prompt(self, prompt: Prompt) -> bool:
        if prompt.is_built_in:
            return False
        with self._lock:
            if self._index_of(prompt.id) is not None:
                return False
            self._prompts.append(prompt.model_copy())
            self._persist()
        logger.info(f"Added prompt: {prompt.name}")
        return True

    def update_prompt(self, prompt: Prompt) -> bool:
        with self._lock:
            index = self._index_of(prompt.id)
            if index is None:
                return False

            updated = prompt.model_copy()
            if prompt.is_built_in:
                original = next((p for p in get_builtin_prompts() if p.id == prompt.id), None)
                updated.is_modified = original is None or original.prompt_text != prompt.prompt_text

            # Disabling the active prompt deactivates it
            if not updated.is_enabled and self._settings.active_prompt_id == str(prompt.id):
                self._settings.active_prompt_id = None

            self._prompts[index] = updated
            self._persist()
        logger.info(f"Updated prompt: {prompt.name}")
        return True

    def delete_prompt(self, prompt: Prompt) -> bool:
        if prompt.is_built_in:
            return False
        with self._lock:
            index = self._index_of(prompt.id)
            if index is None:
                return False
            del self._prompts[index]
            if self._settings.active_prompt_id == str(prompt.id):
                self._settings.active_prompt_id = None
            self._persist()
        logger.info(f"Deleted prompt: {prompt.name}")
        return True

    def reset_to_default(self, prompt: Prompt) -> bool:
        if not prompt.is_built_in:
            return False
        with self._lock:
            original = next((p for p in get_builtin_prompts() if p.id == prompt.id), None)
            index = self._index_of(prompt.id)
            if original is None or index is None:
                return False
            self._prompts[index] = original
            self._persist()
        logger.info(f"Reset prompt to default: {prompt.name}")
        return True

    def toggle_enabled(self, prompt: Union[Prompt, UUID]) -> Optional[bool]:
        prompt_id = prompt if isinstance(prompt, UUID) else prompt.id
        with self._lock:
            index = self._index_of(prompt_id)
            if index is None:
                return None
            current = self._prompts[index]
            current.is_enabled = not current.is_enabled

            # Disabling the active prompt deactivates it
            if not current.is_enabled and self._settings.active_prompt_id == str(prompt_id):
                self._settings.active_prompt_id = None

            self._persist()
            enabled = current.is_enabled
        logger.info(
            f"Toggled prompt enabled: {current.name} -> {'enabled' if enabled else 'disabled'}"
        )
        return enabled
