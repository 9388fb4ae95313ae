# clarion/core/preview_session.py
import asyncio
from typing import Iterable, Optional

from loguru import logger

from ..services.async_utils import Debouncer, run_in_background
from .filters import FilterEvaluator
from .models import FileNode, FilterSpec, PreviewResult
from .preview import compute_preview

UPDATING_LABEL = "Updating…"


class PreviewSession:
    """
    Backs the agent editor's "Context Preview" panel.

    Glob edits are debounced before they reach the evaluator. While the live
    input differs from the globs the shown result was computed for (or a
    recompute is still running) the session reports itself stale, and
    status_label says "Updating…" instead of a count that would not match
    what the user typed. Recomputes are numbered; only the newest may publish.
    """

    def __init__(self, evaluator: FilterEvaluator, debounce_ms: int = 300, file_tree: Iterable[FileNode] = ()):
        self._evaluator = evaluator
        self._tree = tuple(file_tree)
        self._live = FilterSpec()
        self._applied = FilterSpec()
        self._generation = 0
        self._loading = False
        self._task: Optional[asyncio.Task] = None
        self._debouncer = Debouncer(debounce_ms, self._apply_pending)
        self.result = PreviewResult()

    @property
    def live_spec(self) -> FilterSpec:
        return self._live

    @property
    def applied_spec(self) -> FilterSpec:
        return self._applied

    @property
    def is_stale(self) -> bool:
        return self._live != self._applied or self._loading

    @property
    def status_label(self) -> str:
        if self.is_stale:
            return UPDATING_LABEL
        return f"{self.result.included_count} files included"

    def update_globs(self, include_globs: Iterable[str], exclude_globs: Iterable[str]) -> None:
        """Records the user's current input; the evaluator sees it once typing pauses."""
        self._live = FilterSpec.of(include_globs, exclude_globs)
        self._debouncer()

    def _apply_pending(self) -> None:
        self._applied = self._live
        self._task = run_in_background(self.recompute(), name="context-preview")

    async def recompute(self) -> PreviewResult:
        self._generation += 1
        generation = self._generation
        spec = self._applied
        self._loading = True
        try:
            result = await compute_preview(self._tree, spec, self._evaluator)
        finally:
            if generation == self._generation:
                self._loading = False

        if generation != self._generation:
            logger.debug(f"Dropping preview of generation {generation}; current is {self._generation}.")
            return self.result
        self.result = result
        return result

    async def set_file_tree(self, tree: Iterable[FileNode]) -> PreviewResult:
        """A new tree invalidates the preview immediately, with the applied globs."""
        self._tree = tuple(tree)
        self._task = run_in_background(self.recompute(), name="context-preview")
        return await self._task

    async def flush(self) -> PreviewResult:
        """Applies pending input without waiting for the debounce delay,
        then waits for the newest recompute, whatever started it."""
        self._debouncer.flush()
        await self.wait_idle()
        return self.result

    async def wait_idle(self) -> None:
        while self._task is not None and not self._task.done():
            await self._task

    def close(self) -> None:
        self._debouncer.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
