# clarion/core/token_counter.py
import asyncio
from functools import lru_cache
from typing import Any, Iterable, Mapping, Optional

import tiktoken
from loguru import logger

DEFAULT_ENCODING = "cl100k_base" # Common for GPT-3.5/4
FALLBACK_ENCODING = "gpt2"

@lru_cache(maxsize=4) # Cache a few loaded encoder objects
def _get_cached_encoder(encoding_name: str) -> Optional[Any]:
    """Internal helper to load and cache encoder objects."""
    try:
        logger.debug(f"Attempting to load tiktoken encoder: {encoding_name}")
        encoder = tiktoken.get_encoding(encoding_name)
        logger.debug(f"Successfully loaded encoder '{encoding_name}'.")
        return encoder
    except Exception as e:
        # Unknown names raise ValueError; first use may also fail to download the BPE file
        logger.warning(f"Failed to get tiktoken encoder '{encoding_name}': {e}. Trying fallback '{FALLBACK_ENCODING}'.")
        if encoding_name == FALLBACK_ENCODING:
             logger.error(f"Fallback encoder '{FALLBACK_ENCODING}' also failed. No encoder available.")
             return None
        return _get_cached_encoder(FALLBACK_ENCODING)

def count_tokens(text: str, encoding_name: str = DEFAULT_ENCODING) -> int:
    """
    Counts tokens in a string using the specified tiktoken encoding.
    Falls back to character estimation if no encoder can be loaded.
    """
    if not text:
        return 0

    encoder = _get_cached_encoder(encoding_name)

    if encoder:
        try:
            return len(encoder.encode(text))
        except Exception as e:
            logger.error(f"Error encoding text for token count with '{encoding_name}': {e}")
            estimated_tokens = len(text) // 4
            logger.warning(f"Falling back to character-based estimation: {estimated_tokens} tokens.")
            return estimated_tokens
    return len(text) // 4

def format_codebase(contents: Mapping[str, str]) -> str:
    """Renders files the way they are placed in an agent prompt: sorted, one fenced block each."""
    blocks = [f"File: {path}\n```\n{contents[path]}\n```\n\n" for path in sorted(contents)]
    return "".join(blocks).strip()


class ContextTokenTracker:
    """
    Keeps a token estimate of the current context set.

    refresh() cancels the previous in-flight count before starting a new one,
    so only the latest context set ever reports.
    """

    def __init__(self, client, root: Optional[str] = None, encoding_name: str = DEFAULT_ENCODING):
        self._client = client # anything with `async read_files(paths, root=None)`
        self.root = root
        self.encoding_name = encoding_name
        self.token_count: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    def refresh(self, paths: Iterable[str]) -> asyncio.Task:
        if self._task is not None and not self._task.done():
            logger.debug("Cancelling superseded token count.")
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(self._count(sorted(paths)), name="context-token-count")
        return self._task

    async def _count(self, paths: list) -> int:
        if not paths:
            self.token_count = 0
            return 0
        contents = await self._client.read_files(paths, root=self.root)
        count = count_tokens(format_codebase(contents), self.encoding_name)
        self.token_count = count
        logger.debug(f"Context token estimate: {count} tokens over {len(contents)} files")
        return count

    async def wait(self) -> Optional[int]:
        """Waits for the latest refresh; returns the current estimate."""
        task = self._task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self.token_count

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
