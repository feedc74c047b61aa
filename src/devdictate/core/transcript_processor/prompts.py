import json
from pathlib import Path
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

INPUT_PLACEHOLDER = "{input}"


class Prompt(BaseModel):
    """A named template sent to a text transformer.

    ``prompt_text`` normally carries an ``{input}`` placeholder that is replaced
    with the dictated text before inference.
    """

    model_config = ConfigDict(extra="ignore")

    id: UUID = Field(default_factory=uuid4)
    name: str
    display_name: str = ""
    description: str = ""
    prompt_text: str
    is_built_in: bool = False
    is_enabled: bool = True
    is_modified: bool = False

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> "Prompt":
        return cls.model_validate(data)


def build_prompt_text(text: str, template: str) -> str:
    """Substitute the dictated text into a prompt template."""
    if INPUT_PLACEHOLDER in template:
        return template.replace(INPUT_PLACEHOLDER, text)
    return f"{template}\n\n{text}"


def load_builtin_prompts() -> List[Prompt]:
    json_path = Path(__file__).parent / "builtin_prompts.json"

    with open(json_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return [Prompt.model_validate({**item, "is_built_in": True}) for item in data]


_builtin_prompts: Optional[List[Prompt]] = None


def get_builtin_prompts() -> List[Prompt]:
    global _builtin_prompts
    if _builtin_prompts is None:
        _builtin_prompts = load_builtin_prompts()
    return [p.model_copy() for p in _builtin_prompts]
