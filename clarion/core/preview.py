# clarion/core/preview.py
"""
Context preview: which files a candidate filter would hand to an agent.

The tree is pruned bottom-up against an evaluator verdict map. Files always
survive (annotated included/excluded); folders survive only when something
inside them is included. Nothing here mutates its input, so the same
(tree, verdicts) pair always yields an equal result.
"""
from typing import Iterable, Mapping, Optional

from loguru import logger

from .filters import FilterEvaluator
from .models import FileNode, FilterSpec, PreviewNode, PreviewResult, INCLUDED, EXCLUDED, FOLDER
from .tree import flatten_file_paths


def prune(node: FileNode, verdicts: Mapping[str, str]) -> Optional[PreviewNode]:
    if not node.is_folder:
        status = INCLUDED if verdicts.get(node.path) == INCLUDED else EXCLUDED
        return PreviewNode(id=node.id, name=node.name, path=node.path, type=node.type, status=status)

    children = tuple(c for c in (prune(child, verdicts) for child in node.children) if c is not None)
    if any(c.status == INCLUDED or c.has_included_children for c in children):
        return PreviewNode(
            id=node.id, name=node.name, path=node.path, type=node.type,
            status=FOLDER, has_included_children=True, children=children,
        )
    return None


def _count_included(nodes: Iterable[PreviewNode]) -> int:
    total = 0
    for node in nodes:
        if node.is_folder:
            total += _count_included(node.children)
        elif node.status == INCLUDED:
            total += 1
    return total


def build_preview_tree(nodes: Iterable[FileNode], verdicts: Mapping[str, str]) -> PreviewResult:
    kept = tuple(p for p in (prune(node, verdicts) for node in nodes) if p is not None)
    return PreviewResult(nodes=kept, included_count=_count_included(kept))


async def compute_preview(tree: Iterable[FileNode], spec: FilterSpec, evaluator: FilterEvaluator) -> PreviewResult:
    """Asks the evaluator about every file in `tree` and builds the preview from its answer."""
    tree = tuple(tree)
    paths = flatten_file_paths(tree)
    if not paths:
        logger.debug("Preview requested for an empty tree; skipping evaluator call.")
        return PreviewResult()

    try:
        verdicts = await evaluator.preview_filter(paths, list(spec.include_globs), list(spec.exclude_globs))
    except Exception as e:
        logger.exception(f"Filter evaluator failed during preview: {e}")
        verdicts = {}

    result = build_preview_tree(tree, verdicts)
    logger.debug(f"Preview built: {result.included_count}/{len(paths)} files included")
    return result
