"""Loads, validates and caches named prompt configurations."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

import yaml

from .renderer import render_template
from .sources import PromptSource
from .types import (
    REQUIRED_FIELDS,
    REQUIRED_MODEL_FIELDS,
    ConfigInvalid,
    ConfigNotFound,
    ConfigReadFailure,
    PreloadFailure,
    ProcessedPrompt,
    PromptConfig,
    PromptError,
)

logger = logging.getLogger(__name__)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list)):
        return not value
    return False


def parse_prompt_config(name: str, text: str) -> PromptConfig:
    """Parses and validates one YAML prompt document."""
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigReadFailure(f"Failed to parse prompt configuration '{name}': {exc}", name) from exc

    if not isinstance(document, dict):
        raise ConfigInvalid(f"Prompt configuration '{name}' must be a mapping", name)

    for field_name in REQUIRED_FIELDS:
        if field_name not in document or _is_empty(document[field_name]):
            raise ConfigInvalid(
                f"Missing required field '{field_name}' in prompt configuration '{name}'",
                name,
                field=field_name,
            )

    model_config = document["config"]
    if not isinstance(model_config, dict):
        raise ConfigInvalid(f"Invalid config section in prompt configuration '{name}'", name, field="config")
    for field_name in REQUIRED_MODEL_FIELDS:
        if field_name not in model_config or _is_empty(model_config[field_name]):
            raise ConfigInvalid(
                f"Missing required config field '{field_name}' in prompt configuration '{name}'",
                name,
                field=f"config.{field_name}",
            )

    if not isinstance(document["template"], str):
        raise ConfigInvalid(f"Template must be a non-empty string in '{name}'", name, field="template")
    if not isinstance(document["schema"], dict):
        raise ConfigInvalid(f"Schema must be a mapping in '{name}'", name, field="schema")

    extra = {k: v for k, v in document.items() if k not in REQUIRED_FIELDS}
    return PromptConfig(
        name=name,
        version=str(document["version"]),
        description=str(document["description"]),
        model_config=dict(model_config),
        template=document["template"],
        schema=document["schema"],
        extra=extra,
    )


class PromptManager:
    """Process-wide prompt cache.

    Build one at startup and pass it to whatever needs rendered prompts.
    Cached entries never expire; call ``clear_cache`` after the source changes.
    """

    def __init__(self, source: PromptSource) -> None:
        self.source = source
        self._cache: Dict[str, PromptConfig] = {}
        self._lock = threading.Lock()

    def set_source(self, source: PromptSource) -> None:
        self.source = source
        self.clear_cache()

    def load_config(self, name: str) -> PromptConfig:
        cached = self._cache.get(name)
        if cached is not None:
            logger.debug("Prompt cache hit: %s", name)
            return cached

        logger.debug("Prompt cache miss: %s (source=%r)", name, self.source)
        try:
            text = self.source.read(name)
        except PromptError:
            raise
        except Exception as exc:
            raise ConfigReadFailure(f"Failed to load prompt configuration: {name}", name) from exc

        config = parse_prompt_config(name, text)
        with self._lock:
            self._cache[name] = config
        return config

    def render(self, template: str, variables: Dict[str, Any] | None = None) -> str:
        return render_template(template, variables)

    def get_processed_prompt(self, name: str, variables: Dict[str, Any] | None = None) -> ProcessedPrompt:
        config = self.load_config(name)
        prompt = render_template(config.template, variables)
        return ProcessedPrompt(prompt=prompt, config=config)

    def available_prompts(self) -> List[str]:
        return list(self.source.list_names())

    def prompt_exists(self, name: str) -> bool:
        if name in self._cache:
            return True
        try:
            self.source.read(name)
        except ConfigNotFound:
            return False
        return True

    def preload_all(self) -> List[str]:
        """Loads every available prompt, failing on the first bad one."""
        try:
            names = self.available_prompts()
        except PromptError as exc:
            raise PreloadFailure(f"Failed to enumerate prompt configurations: {exc}") from exc

        for name in names:
            try:
                self.load_config(name)
            except PromptError as exc:
                raise PreloadFailure(f"Failed to preload prompt '{name}': {exc}", name) from exc
        logger.info("Preloaded %d prompt configuration(s)", len(names))
        return names

    def clear_cache(self, name: Optional[str] = None) -> None:
        with self._lock:
            if name is None:
                self._cache.clear()
            else:
                self._cache.pop(name, None)

    def cached_prompts(self) -> List[str]:
        return list(self._cache.keys())
