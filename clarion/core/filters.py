# clarion/core/filters.py
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Sequence

from loguru import logger

from .models import FilterSpec, INCLUDED

# Shown by `clarion presets`; matching itself happens in the backend evaluator.
GLOB_GUIDE = """Glob Pattern Quick Guide:
  *          matches any number of characters, but not /
  **         matches any number of characters including /
  ?          matches a single character
  [abc]      matches one character in the brackets
  {src,test} matches any of the strings
E.g. src/**/*.tsx includes all TSX files in the src directory."""


class FilterEvaluator(ABC):
    """Something that can tell, per path, whether an include/exclude glob pair keeps it."""

    @abstractmethod
    async def preview_filter(
        self,
        file_paths: Sequence[str],
        include_globs: Sequence[str],
        exclude_globs: Sequence[str],
    ) -> Dict[str, str]:
        """
        Returns {path: "included" | "excluded"}.
        Implementations should return {} instead of raising when evaluation fails.
        """


class UnknownPresetError(KeyError):
    pass


def included_paths(verdicts: Mapping[str, str], paths: Optional[Sequence[str]] = None) -> List[str]:
    """Paths whose verdict is exactly 'included'; limited to `paths` when given."""
    candidates = paths if paths is not None else list(verdicts)
    return [p for p in candidates if verdicts.get(p) == INCLUDED]


def apply_exclude_preset(spec: FilterSpec, preset_name: str, presets: Mapping[str, Sequence[str]]) -> FilterSpec:
    """Appends a preset's globs to the exclude list, skipping ones already present."""
    try:
        preset_globs = presets[preset_name]
    except KeyError:
        raise UnknownPresetError(f"Unknown exclude preset '{preset_name}'. Available: {', '.join(presets) or 'none'}") from None

    merged = list(dict.fromkeys([*spec.exclude_globs, *preset_globs]))
    added = len(merged) - len(spec.exclude_globs)
    logger.debug(f"Applied preset '{preset_name}': {added} new exclude glob(s)")
    return FilterSpec(spec.include_globs, tuple(merged))
