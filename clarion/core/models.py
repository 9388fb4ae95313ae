# clarion/core/models.py
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple

# File tree node types
FILE = "file"
FOLDER = "folder"

# Evaluator verdicts / preview statuses
INCLUDED = "included"
EXCLUDED = "excluded"

@dataclass(frozen=True)
class FileNode:
    """A file or folder in the project tree, as served by the backend.
    `path` is relative to the project root, '/'-separated and unique in the tree."""
    id: str
    name: str
    path: str
    type: str = FILE
    children: Tuple['FileNode', ...] = ()

    @property
    def is_folder(self) -> bool:
        return self.type == FOLDER

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FileNode':
        """Raises ValueError when `data` is not a node object."""
        if not isinstance(data, Mapping):
            raise ValueError(f"expected a node object, got {type(data).__name__}")
        # Folders serialized with an empty children list lose the key entirely (omitempty)
        raw_children = data.get("children") or []
        if not isinstance(raw_children, list):
            raise ValueError(f"expected a list of children, got {type(raw_children).__name__}")
        children = tuple(cls.from_dict(child) for child in raw_children)
        path = data.get("path") or ""
        if not isinstance(path, str):
            raise ValueError(f"expected a string path, got {type(path).__name__}")
        return cls(
            id=data.get("id") or path,
            name=data.get("name") or path.rsplit("/", 1)[-1],
            path=path,
            type=data.get("type") or (FOLDER if children else FILE),
            children=children,
        )

@dataclass(frozen=True)
class FilterSpec:
    """Include/exclude globs of an agent. Empty include means 'everything not excluded'."""
    include_globs: Tuple[str, ...] = ()
    exclude_globs: Tuple[str, ...] = ()

    @classmethod
    def of(cls, include_globs: Optional[Iterable[str]] = None, exclude_globs: Optional[Iterable[str]] = None) -> 'FilterSpec':
        return cls(tuple(include_globs or ()), tuple(exclude_globs or ()))

    @property
    def has_filters(self) -> bool:
        return len(self.include_globs) > 0 or len(self.exclude_globs) > 0

@dataclass(frozen=True)
class PreviewNode:
    """File tree node annotated for the context preview.
    status is INCLUDED/EXCLUDED for files and FOLDER for kept folders."""
    id: str
    name: str
    path: str
    type: str
    status: str
    has_included_children: bool = False
    children: Tuple['PreviewNode', ...] = ()

    @property
    def is_folder(self) -> bool:
        return self.type == FOLDER

@dataclass(frozen=True)
class PreviewResult:
    nodes: Tuple[PreviewNode, ...] = ()
    included_count: int = 0

@dataclass(frozen=True)
class OperationResult:
    """Outcome of a write-style backend call."""
    success: bool
    error: Optional[str] = None
