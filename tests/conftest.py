"""Shared test fixtures for the notionport test suite."""

from __future__ import annotations

from typing import Any

import pytest

from notionport.config import NotionportConfig
from notionport.converter.md_to_notion import MarkdownToNotionConverter


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def total(self, name: str) -> int:
        return sum(i["value"] for i in self.increments if i["name"] == name)


@pytest.fixture
def config() -> NotionportConfig:
    """Default test configuration with a dummy token."""
    return NotionportConfig(token="test_token_1234")


@pytest.fixture
def converter(config: NotionportConfig) -> MarkdownToNotionConverter:
    """Markdown-to-Notion converter using the default test config."""
    return MarkdownToNotionConverter(config)


@pytest.fixture
def metrics() -> RecordingMetricsHook:
    return RecordingMetricsHook()
