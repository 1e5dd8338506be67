"""Prompt configuration data structures and errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

REQUIRED_FIELDS = ("version", "description", "config", "template", "schema")
REQUIRED_MODEL_FIELDS = ("model", "temperature", "max_tokens")


@dataclass
class PromptConfig:
    name: str
    version: str
    description: str
    model_config: Dict[str, Any]
    template: str
    schema: Dict[str, Any]
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def model(self) -> str:
        return str(self.model_config["model"])

    @property
    def temperature(self) -> float:
        return float(self.model_config["temperature"])

    @property
    def max_tokens(self) -> int:
        return int(self.model_config["max_tokens"])


@dataclass
class ProcessedPrompt:
    prompt: str
    config: PromptConfig


class PromptError(RuntimeError):
    """Base class for prompt loading and rendering failures."""

    def __init__(self, message: str, name: Optional[str] = None) -> None:
        super().__init__(message)
        self.name = name


class ConfigNotFound(PromptError):
    """The backing source has no document with this name."""


class ConfigInvalid(PromptError):
    """Document parsed but a required field is missing or empty."""

    def __init__(self, message: str, name: Optional[str] = None, field: Optional[str] = None) -> None:
        super().__init__(message, name)
        self.field = field


class ConfigReadFailure(PromptError):
    """Underlying filesystem, network or YAML error while reading a document."""


class PreloadFailure(PromptError):
    """Eager loading stopped on the first failing document."""


class TemplateError(PromptError):
    """Loop or conditional markup is malformed."""
