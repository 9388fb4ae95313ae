# clarion/core/context_resolver.py
from typing import AbstractSet, FrozenSet, Iterable, Optional

from loguru import logger

from .filters import FilterEvaluator, included_paths
from .models import FileNode, FilterSpec
from .tree import flatten_file_paths


async def resolve_filtered_paths(tree: Iterable[FileNode], spec: FilterSpec, evaluator: FilterEvaluator) -> FrozenSet[str]:
    """
    Files of `tree` that the evaluator includes under `spec`.
    An empty tree makes no evaluator call. Evaluator failures count as 'nothing included'.
    """
    paths = flatten_file_paths(tree)
    if not paths:
        logger.debug("No files in tree; filtered context is empty.")
        return frozenset()

    try:
        verdicts = await evaluator.preview_filter(paths, list(spec.include_globs), list(spec.exclude_globs))
    except Exception as e:
        logger.exception(f"Filter evaluator failed while resolving context: {e}")
        verdicts = {}

    result = frozenset(included_paths(verdicts, paths))
    logger.info(f"Agent filters selected {len(result)} of {len(paths)} files.")
    return result


async def resolve_context_paths(
    tree: Iterable[FileNode],
    spec: Optional[FilterSpec],
    manual_selection: AbstractSet[str],
    evaluator: FilterEvaluator,
) -> FrozenSet[str]:
    """The authoritative codebase context: manual selection unless the agent declares filters."""
    if spec is None or not spec.has_filters:
        return frozenset(manual_selection)
    return await resolve_filtered_paths(tree, spec, evaluator)


class ContextSetResolver:
    """
    Recomputes the agent-filtered context set.

    Each recompute takes a new generation number; when an older request
    finishes after a newer one was started its result is dropped, so a slow
    stale response can never overwrite a fresher one.
    """

    def __init__(self, evaluator: FilterEvaluator):
        self.evaluator = evaluator
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def invalidate(self) -> int:
        """Supersedes every in-flight recompute."""
        self._generation += 1
        return self._generation

    async def recompute(self, tree: Iterable[FileNode], spec: FilterSpec) -> Optional[FrozenSet[str]]:
        """Returns the new set, or None if a later recompute superseded this one."""
        generation = self.invalidate()
        if not spec.has_filters:
            return frozenset()

        result = await resolve_filtered_paths(tree, spec, self.evaluator)
        if generation != self._generation:
            logger.debug(f"Discarding context result of generation {generation}; current is {self._generation}.")
            return None
        return result
