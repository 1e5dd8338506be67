"""Backing sources for named prompt documents."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Protocol

import requests

from .types import ConfigNotFound, ConfigReadFailure

logger = logging.getLogger(__name__)


class PromptSource(Protocol):
    def read(self, name: str) -> str:
        ...

    def list_names(self) -> List[str]:
        ...


class DirectoryPromptSource:
    """Reads ``<base_path>/<name><suffix>`` files."""

    def __init__(self, base_path: str | Path, suffix: str = ".yaml") -> None:
        self.base_path = Path(base_path)
        self.suffix = suffix

    def __repr__(self) -> str:
        return f"DirectoryPromptSource({str(self.base_path)!r})"

    def path_for(self, name: str) -> Path:
        return self.base_path / f"{name}{self.suffix}"

    def read(self, name: str) -> str:
        path = self.path_for(name)
        logger.debug("Reading prompt %s from %s", name, path)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ConfigNotFound(f"Prompt configuration not found: {path}", name) from exc
        except OSError as exc:
            raise ConfigReadFailure(f"Failed to read prompt configuration {path}: {exc}", name) from exc

    def list_names(self) -> List[str]:
        try:
            entries = sorted(self.base_path.iterdir())
        except OSError as exc:
            raise ConfigReadFailure(f"Failed to scan prompts directory {self.base_path}: {exc}") from exc
        return [p.name[: -len(self.suffix)] for p in entries if p.is_file() and p.name.endswith(self.suffix)]


class HttpPromptSource:
    """Reads prompt documents from a remote store.

    Documents live at ``<base_url>/<name><suffix>``; ``<base_url>/index.json``
    holds a JSON list of available names.
    """

    def __init__(self, base_url: str, suffix: str = ".yaml", timeout: int = 20) -> None:
        self.base_url = base_url.rstrip("/")
        self.suffix = suffix
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"HttpPromptSource({self.base_url!r})"

    def read(self, name: str) -> str:
        url = f"{self.base_url}/{name}{self.suffix}"
        logger.debug("Fetching prompt %s from %s", name, url)
        try:
            res = requests.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ConfigReadFailure(f"Failed to fetch prompt configuration {url}: {exc}", name) from exc
        if res.status_code == 404:
            raise ConfigNotFound(f"Prompt configuration not found: {url}", name)
        if res.status_code >= 400:
            body = (res.text or "").strip()
            raise ConfigReadFailure(f"Prompt fetch failed HTTP {res.status_code}: {body[:400]}", name)
        return res.text

    def list_names(self) -> List[str]:
        url = f"{self.base_url}/index.json"
        try:
            res = requests.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ConfigReadFailure(f"Failed to fetch prompt index {url}: {exc}") from exc
        if res.status_code >= 400:
            raise ConfigReadFailure(f"Prompt index fetch failed HTTP {res.status_code}")
        try:
            payload = res.json()
        except ValueError as exc:
            raise ConfigReadFailure(f"Prompt index is not valid JSON: {exc}") from exc
        if not isinstance(payload, list):
            raise ConfigReadFailure("Prompt index must be a JSON list of names")
        return [str(item) for item in payload]
