# clarion/core/tree.py
"""Helpers over immutable file trees: flattening, lookup, ordering and text rendering."""
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .models import FileNode, PreviewNode, FILE, FOLDER

AnyNode = Union[FileNode, PreviewNode]

def iter_file_paths(nodes: Iterable[FileNode]) -> Iterator[str]:
    """Yields the path of every file below `nodes`, depth-first in tree order."""
    stack: List[FileNode] = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        if node.is_folder:
            stack.extend(reversed(node.children))
        else:
            yield node.path

def flatten_file_paths(nodes: Iterable[FileNode]) -> List[str]:
    return list(iter_file_paths(nodes))

def collect_file_paths(node: FileNode) -> List[str]:
    """File paths under a single node (just its own path for a file)."""
    return flatten_file_paths([node])

def find_node(nodes: Iterable[FileNode], path: str) -> Optional[FileNode]:
    path = path.strip("/")
    stack: List[FileNode] = list(nodes)
    while stack:
        node = stack.pop()
        if node.path == path:
            return node
        if node.is_folder and path.startswith(node.path + "/"):
            stack.extend(node.children)
    return None

def build_file_tree(paths: Iterable[str]) -> Tuple[FileNode, ...]:
    """
    Builds a nested tree from flat, '/'-separated file paths.
    Intermediate segments become folders; ids equal paths, as the backend produces them.
    """
    # Mutable scaffold first: {name: (path, children-dict or None for files)}
    root: dict = {}
    for raw in paths:
        parts = [p for p in raw.replace("\\", "/").split("/") if p]
        level = root
        for i, part in enumerate(parts):
            path_so_far = "/".join(parts[:i + 1])
            is_last = i == len(parts) - 1
            if part not in level:
                level[part] = (path_so_far, None if is_last else {})
            sub = level[part][1]
            if sub is None:
                break # A file cannot have children; ignore deeper segments
            level = sub

    def freeze(level: dict) -> Tuple[FileNode, ...]:
        nodes = []
        for name, (path, sub) in level.items():
            if sub is None:
                nodes.append(FileNode(id=path, name=name, path=path, type=FILE))
            else:
                nodes.append(FileNode(id=path, name=name, path=path, type=FOLDER, children=freeze(sub)))
        return tuple(nodes)

    return freeze(root)

def sort_nodes(nodes: Iterable[AnyNode]) -> List[AnyNode]:
    """Folders before files, then alphabetically; case only breaks ties, lowercase first."""
    return sorted(nodes, key=lambda n: (n.type != FOLDER, n.name.casefold(), n.name.swapcase()))

def render_tree(
    nodes: Sequence[AnyNode],
    label: Optional[Callable[[AnyNode], str]] = None,
    prefix: str = "",
) -> List[str]:
    """Renders nodes as box-drawing lines, children indented under their folder."""
    label = label or (lambda n: n.name + "/" if n.type == FOLDER else n.name)
    lines: List[str] = []
    ordered = sort_nodes(nodes)
    for i, node in enumerate(ordered):
        last = i == len(ordered) - 1
        lines.append(f"{prefix}{'└── ' if last else '├── '}{label(node)}")
        if node.type == FOLDER and node.children:
            lines.extend(render_tree(node.children, label, prefix + ("    " if last else "│   ")))
    return lines
