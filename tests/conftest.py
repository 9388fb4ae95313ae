# tests/conftest.py
import asyncio
from typing import Callable, Dict, List, Optional, Sequence

import pytest
from loguru import logger

from clarion.config import loader
from clarion.core.filters import FilterEvaluator
from clarion.core.models import INCLUDED, EXCLUDED
from clarion.core.tree import build_file_tree


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config and log files out of the real user profile."""
    monkeypatch.setenv("CLARION_HOME", str(tmp_path / "clarion-home"))
    for env_name in loader.ENV_OVERRIDES:
        monkeypatch.delenv(env_name, raising=False)
    loader.reset_config_cache()
    yield tmp_path / "clarion-home"
    loader.reset_config_cache()
    logger.remove()


class FakeEvaluator(FilterEvaluator):
    """Answers from a decide(path, include, exclude) callback and records every call."""

    def __init__(self, decide: Optional[Callable[[str, Sequence[str], Sequence[str]], bool]] = None,
                 delay: float = 0.0, error: Optional[Exception] = None):
        self.decide = decide or (lambda path, include, exclude: True)
        self.delay = delay
        self.error = error
        self.calls: List[tuple] = []

    async def preview_filter(self, file_paths, include_globs, exclude_globs) -> Dict[str, str]:
        self.calls.append((list(file_paths), list(include_globs), list(exclude_globs)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return {
            p: INCLUDED if self.decide(p, include_globs, exclude_globs) else EXCLUDED
            for p in file_paths
        }


def by_prefix_and_suffix(path, include, exclude) -> bool:
    """Tiny stand-in for the backend: 'dir/**' prefixes and '**/*.ext' suffixes only."""
    def matches(pattern):
        if pattern.endswith("/**"):
            return path.startswith(pattern[:-2])
        if pattern.startswith("**/*"):
            return path.endswith(pattern[4:])
        return path == pattern
    if any(matches(p) for p in exclude):
        return False
    return not include or any(matches(p) for p in include)


@pytest.fixture
def sample_tree():
    return build_file_tree(["src/a.ts", "src/b.md", "docs/readme.md"])


@pytest.fixture
def fake_evaluator():
    return FakeEvaluator(by_prefix_and_suffix)
