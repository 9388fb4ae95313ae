"""
Clarion backend client.

Thin async HTTP client for the /api/v2 endpoints the context subsystem
needs: directory tree, file contents, glob filter evaluation and agent
personas. Reads never raise: on any failure they log and return an empty
result so callers degrade to "nothing loaded / nothing included".
"""

from typing import Dict, List, Optional, Sequence, Tuple

import httpx
from loguru import logger
from pydantic import ValidationError

from ..config.loader import get_config
from ..core.filters import FilterEvaluator
from ..core.models import FileNode, OperationResult, INCLUDED, EXCLUDED
from .schemas import (
    AgentPersona,
    LoadDirectoryRequest,
    PreviewFilterRequest,
    PreviewFilterResponse,
    ReadFilesRequest,
    ReadFilesResponse,
)

# Failures that make a read degrade to an empty result.
# json/pydantic decoding errors are ValueErrors.
_READ_ERRORS = (httpx.HTTPError, ValueError, ValidationError)


class ClarionClient(FilterEvaluator):
    """
    Client for the Clarion backend.

    Also serves as the FilterEvaluator used by the context resolver and the
    preview session: glob matching lives in the backend.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Backend root (e.g. 'http://localhost:2077'); defaults to config api_url.
            timeout: Request timeout in seconds; defaults to config request_timeout.
            transport: Optional httpx transport (tests pass an httpx.MockTransport).
        """
        config = get_config()
        self.base_url = (base_url or config.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else config.request_timeout
        self.client = httpx.AsyncClient(
            base_url=f"{self.base_url}/api/v2",
            timeout=self.timeout,
            transport=transport,
        )
        logger.info(f"Clarion client initialized with endpoint: {self.base_url}")

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "ClarionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # File system

    async def load_directory_tree(self, path: str) -> Tuple[FileNode, ...]:
        """Top-level nodes of the project tree rooted at `path` (empty on failure)."""
        try:
            response = await self.client.post("/fs/directory/load", json=LoadDirectoryRequest(path=path).model_dump())
            response.raise_for_status()
            data = response.json() or []
            if not isinstance(data, list):
                raise ValueError(f"expected a list of nodes, got {type(data).__name__}")
            tree = tuple(FileNode.from_dict(node) for node in data)
        except _READ_ERRORS as e:
            logger.error(f"Error fetching directory tree for {path}: {e}")
            return ()
        logger.debug(f"Loaded directory tree for {path}: {len(tree)} top-level nodes")
        return tree

    async def read_files(self, paths: Sequence[str], root: Optional[str] = None) -> Dict[str, str]:
        """
        Contents of several files, keyed by the paths as given.
        With `root`, relative paths are resolved against it on the backend side.
        """
        if not paths:
            return {}
        full_paths = {f"{root.rstrip('/')}/{p}" if root else p: p for p in paths}
        try:
            response = await self.client.post("/fs/files/read", json=ReadFilesRequest(paths=list(full_paths)).model_dump())
            response.raise_for_status()
            files = ReadFilesResponse.model_validate(response.json()).files
        except _READ_ERRORS as e:
            logger.error(f"Error fetching files content ({len(paths)} files): {e}")
            return {}
        return {full_paths.get(key, key): content for key, content in files.items()}

    async def preview_filter(
        self,
        file_paths: Sequence[str],
        include_globs: Sequence[str],
        exclude_globs: Sequence[str],
    ) -> Dict[str, str]:
        payload = PreviewFilterRequest(
            file_paths=list(file_paths),
            include_globs=list(include_globs),
            exclude_globs=list(exclude_globs),
        )
        try:
            response = await self.client.post("/fs/preview-filter", json=payload.model_dump())
            response.raise_for_status()
            status = PreviewFilterResponse.model_validate(response.json()).status
        except _READ_ERRORS as e:
            logger.error(f"Error fetching filter preview: {e}")
            return {}
        # Anything other than an explicit 'included' is treated as excluded
        return {path: INCLUDED if verdict == INCLUDED else EXCLUDED for path, verdict in status.items()}

    # Agents

    async def list_agents(self) -> List[AgentPersona]:
        try:
            response = await self.client.get("/agents/list")
            response.raise_for_status()
            agents = [AgentPersona.model_validate(item) for item in (response.json() or [])]
        except _READ_ERRORS as e:
            logger.error(f"Error fetching agents: {e}")
            return []
        logger.debug(f"Fetched {len(agents)} agents")
        return agents

    async def get_agent(self, agent_id: str) -> Optional[AgentPersona]:
        for agent in await self.list_agents():
            if agent.id == agent_id:
                return agent
        return None

    async def save_agent(self, agent: AgentPersona) -> OperationResult:
        return await self._write("POST", "/agents/save", json=agent.to_payload())

    async def delete_agent(self, agent_id: str) -> OperationResult:
        return await self._write("DELETE", f"/agents/delete/{agent_id}")

    async def _write(self, method: str, url: str, json=None) -> OperationResult:
        try:
            response = await self.client.request(method, url, json=json)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            return OperationResult(success=False, error=str(e))
        if response.is_error:
            logger.error(f"{method} {url} returned {response.status_code}: {response.text}")
            return OperationResult(success=False, error=response.text or response.reason_phrase)
        return OperationResult(success=True)
