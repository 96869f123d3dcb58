from __future__ import annotations

import json
import logging

from pydantic import BaseModel, Field


log = logging.getLogger("studio.schemas.settings")


class Setting(BaseModel):
    id: int
    key: str
    type: str
    description: str = ""
    value: str


class SettingRequest(BaseModel):
    key: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    value: str
    description: str = ""


class LLMSystem(BaseModel):
    id: int
    name: str
    api_key_setting: str
    default_model: str
    default_multimodal: str | None = None
    # JSON encoded list of model names
    available_models: str = "[]"
    is_default: bool = False

    def models(self) -> list[str]:
        try:
            raw = json.loads(self.available_models)
        except (TypeError, ValueError):
            log.warning("Invalid available_models JSON for LLM system %s; ignoring.", self.name)
            return []
        if not isinstance(raw, list):
            return []
        return [str(item) for item in raw]
