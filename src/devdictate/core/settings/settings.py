"""
Settings management with JSON persistence.

Handles loading, saving, and validating application settings.
Uses platformdirs for cross-platform directory resolution.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from platformdirs import user_config_path
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...utils.logger import get_logger

logger = get_logger(__name__)

APP_NAME = "devdictate"


def _get_default_prompts() -> List[dict]:
    from ..transcript_processor.prompts import get_builtin_prompts

    return [p.to_dict() for p in get_builtin_prompts()]


def _get_default_dictionary() -> List[dict]:
    from ..transcript_processor.vocabulary_processor import default_dictionary_entries

    return [e.to_dict() for e in default_dictionary_entries()]


def merge_builtin_prompts(saved: List[dict]) -> List[dict]:
    """
    Combine the shipped built-in prompts with saved prompts.

    Saved copies of built-ins replace the shipped version (user edits and the
    enabled flag survive), custom prompts are appended in saved order and
    built-ins added in a newer release appear automatically.
    """
    merged = _get_default_prompts()
    index_by_id = {p["id"]: i for i, p in enumerate(merged)}

    for item in saved:
        if not isinstance(item, dict) or "id" not in item:
            continue
        item_id = str(item["id"])
        if item.get("is_built_in"):
            if item_id in index_by_id:
                merged[index_by_id[item_id]] = item
        else:
            merged.append(item)

    return merged


def get_config_dir() -> Path:
    return user_config_path(APP_NAME, ensure_exists=True)


class LLMProviderSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_assignment=False)

    model: str = ""
    api_key: Optional[str] = None
    api_base: Optional[str] = None
    saved_models: List[str] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: dict) -> "LLMProviderSettings":
        return cls.model_validate(data)


class Settings(BaseModel):
    model_config = ConfigDict(validate_assignment=False)

    markdown_mode_enabled: bool = False
    prompts: List[dict] = Field(default_factory=list)
    active_prompt_id: Optional[str] = None

    symbol_rules_enabled: bool = True
    custom_rules: List[dict] = Field(default_factory=list)
    dictionary_entries: List[dict] = Field(default_factory=list)
    vocabulary_replacements: List[Tuple[str, str]] = Field(default_factory=list)

    llm_provider: str = "openai"
    llm_provider_settings: Dict[str, dict] = Field(default_factory=dict)

    @field_validator("llm_provider")
    @classmethod
    def provider_not_empty(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("llm_provider must be a non-empty string")
        return v

    @classmethod
    def load(cls) -> "Settings":
        config_file = get_config_dir() / "settings.json"

        if config_file.exists():
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)

                # Filter to valid keys only
                valid_keys = cls.model_fields.keys()
                filtered_data = {k: v for k, v in data.items() if k in valid_keys}

                for list_field in (
                    "prompts",
                    "custom_rules",
                    "dictionary_entries",
                    "vocabulary_replacements",
                ):
                    if list_field in filtered_data and not isinstance(
                        filtered_data[list_field], list
                    ):
                        logger.warning(f"Invalid {list_field}, resetting to default")
                        del filtered_data[list_field]

                # Validate each field individually, falling back to defaults on error
                settings = cls._load_with_fallbacks(filtered_data)

                settings.prompts = merge_builtin_prompts(settings.prompts)
                if "dictionary_entries" not in filtered_data:
                    settings.dictionary_entries = _get_default_dictionary()

                return settings
            except (json.JSONDecodeError, TypeError, AttributeError) as e:
                logger.warning(
                    f"Could not load settings: {e}. Using defaults.", exc_info=True
                )
                return cls.with_defaults()

        return cls.with_defaults()

    @classmethod
    def with_defaults(cls) -> "Settings":
        settings = cls()
        settings.prompts = _get_default_prompts()
        settings.dictionary_entries = _get_default_dictionary()
        return settings

    @classmethod
    def _load_with_fallbacks(cls, data: dict) -> "Settings":
        """Load settings with field-level fallback to defaults on validation errors."""
        defaults = cls()
        result_data = {}

        for field_name in cls.model_fields:
            if field_name in data:
                try:
                    # Validate individual field by creating partial model
                    test_data = {field_name: data[field_name]}
                    cls.model_validate({**defaults.model_dump(), **test_data})
                    result_data[field_name] = data[field_name]
                except Exception:
                    default_val = getattr(defaults, field_name)
                    logger.warning(
                        f"Invalid {field_name} {data[field_name]!r}, resetting to {default_val}"
                    )
                    result_data[field_name] = default_val
            else:
                result_data[field_name] = getattr(defaults, field_name)

        return cls.model_construct(**result_data)

    def save(self) -> None:
        config_file = get_config_dir() / "settings.json"

        data = self.model_dump(mode="json")

        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def reset_to_defaults(self) -> None:
        default = Settings.with_defaults()
        for key, value in default.model_dump().items():
            setattr(self, key, value)

    def get_provider_settings(self, provider_id: str) -> LLMProviderSettings:
        if provider_id in self.llm_provider_settings:
            return LLMProviderSettings.model_validate(
                self.llm_provider_settings[provider_id]
            )
        return LLMProviderSettings()

    def set_provider_settings(
        self, provider_id: str, settings: LLMProviderSettings
    ) -> None:
        self.llm_provider_settings[provider_id] = settings.model_dump()

    @property
    def llm_model(self) -> str:
        return self.get_provider_settings(self.llm_provider).model

    @llm_model.setter
    def llm_model(self, value: str) -> None:
        settings = self.get_provider_settings(self.llm_provider)
        settings.model = value
        self.set_provider_settings(self.llm_provider, settings)

    @property
    def llm_api_key(self) -> Optional[str]:
        return self.get_provider_settings(self.llm_provider).api_key

    @llm_api_key.setter
    def llm_api_key(self, value: Optional[str]) -> None:
        settings = self.get_provider_settings(self.llm_provider)
        settings.api_key = value
        self.set_provider_settings(self.llm_provider, settings)

    @property
    def llm_api_base(self) -> Optional[str]:
        return self.get_provider_settings(self.llm_provider).api_base

    @llm_api_base.setter
    def llm_api_base(self, value: Optional[str]) -> None:
        settings = self.get_provider_settings(self.llm_provider)
        settings.api_base = value
        self.set_provider_settings(self.llm_provider, settings)


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings.load()
    return _settings_instance
