# clarion/core/app_context.py
from typing import FrozenSet, Iterable, Optional, Tuple

from loguru import logger

from ..api.schemas import AgentPersona, CodebaseFilters
from .context_resolver import ContextSetResolver
from .models import FileNode, FilterSpec
from .selection import remove_path, retain_existing, toggle_node
from .tree import flatten_file_paths


class AppContext:
    """
    Application state for one open workspace.

    Built explicitly and handed to whatever needs it (CLI commands, tests,
    a UI layer) rather than living in a module-level store. It owns the
    project tree, the active agent and both candidate context sets, and
    decides which of them is authoritative.
    """

    def __init__(self, client):
        self.client = client # ClarionClient or any object with the same async API
        self.resolver = ContextSetResolver(client)
        self.project_root: Optional[str] = None
        self.file_tree: Tuple[FileNode, ...] = ()
        self.active_agent: Optional[AgentPersona] = None
        self.manual_selection: FrozenSet[str] = frozenset()
        self.agent_filtered_paths: FrozenSet[str] = frozenset()

    @property
    def filter_spec(self) -> FilterSpec:
        if self.active_agent is None:
            return FilterSpec()
        return self.active_agent.filter_spec

    @property
    def has_filters(self) -> bool:
        return self.filter_spec.has_filters

    @property
    def context_paths(self) -> FrozenSet[str]:
        """The file set sent as codebase context with an agent run."""
        return self.agent_filtered_paths if self.has_filters else self.manual_selection

    # --- Project & tree ---

    async def open_project(self, root: str) -> None:
        logger.info(f"Opening project: {root}")
        self.project_root = root
        self.file_tree = ()
        self.manual_selection = frozenset()
        self.agent_filtered_paths = frozenset()
        await self.refresh_file_tree()

    async def refresh_file_tree(self) -> None:
        if not self.project_root:
            logger.debug("No project open; nothing to refresh.")
            return
        await self.set_file_tree(await self.client.load_directory_tree(self.project_root))

    async def set_file_tree(self, tree: Iterable[FileNode]) -> None:
        """Replaces the tree wholesale; selections never keep paths the new tree lacks."""
        self.file_tree = tuple(tree)
        existing = frozenset(flatten_file_paths(self.file_tree))
        dropped = self.manual_selection - existing
        if dropped:
            logger.debug(f"Dropping {len(dropped)} selected paths missing from the new tree")
        self.manual_selection = retain_existing(self.manual_selection, self.file_tree)
        self.agent_filtered_paths = self.agent_filtered_paths & existing
        await self.recompute_agent_filter()

    # --- Agent ---

    async def set_active_agent(self, agent: Optional[AgentPersona]) -> None:
        self.active_agent = agent
        logger.info(f"Active agent: {agent.name if agent else 'none'}")
        await self.recompute_agent_filter()

    async def update_agent_filters(self, filters: CodebaseFilters) -> None:
        if self.active_agent is None:
            raise ValueError("No active agent to update filters for.")
        self.active_agent = self.active_agent.model_copy(update={"codebase_filters": filters})
        await self.recompute_agent_filter()

    async def recompute_agent_filter(self) -> FrozenSet[str]:
        if not self.has_filters:
            self.resolver.invalidate()
            self.agent_filtered_paths = frozenset()
            return self.agent_filtered_paths

        result = await self.resolver.recompute(self.file_tree, self.filter_spec)
        if result is not None:
            self.agent_filtered_paths = result
        return self.agent_filtered_paths

    # --- Manual selection ---

    def toggle_file_for_context(self, node: FileNode) -> None:
        self.manual_selection = toggle_node(self.manual_selection, node)

    def remove_file_from_context(self, path: str) -> None:
        self.manual_selection = remove_path(self.manual_selection, path)
