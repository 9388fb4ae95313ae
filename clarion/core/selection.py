# clarion/core/selection.py
"""Manual (checkbox) context selection. All functions return new frozensets."""
from typing import AbstractSet, FrozenSet, Iterable

from .models import FileNode
from .tree import collect_file_paths, flatten_file_paths


def toggle_node(selection: AbstractSet[str], node: FileNode) -> FrozenSet[str]:
    """Selecting a folder selects every file in it; if they were all selected already, deselects them."""
    paths = collect_file_paths(node)
    all_selected = len(paths) > 0 and all(p in selection for p in paths)
    if all_selected:
        return frozenset(selection).difference(paths)
    return frozenset(selection).union(paths)

def remove_path(selection: AbstractSet[str], path: str) -> FrozenSet[str]:
    return frozenset(selection).difference([path])

def retain_existing(selection: AbstractSet[str], tree: Iterable[FileNode]) -> FrozenSet[str]:
    """Drops selected paths that are no longer files in `tree`."""
    return frozenset(selection).intersection(flatten_file_paths(tree))
