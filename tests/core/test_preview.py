# tests/core/test_preview.py
import asyncio

from clarion.core.models import FilterSpec, PreviewResult, INCLUDED, EXCLUDED, FOLDER
from clarion.core.preview import build_preview_tree, compute_preview, prune
from clarion.core.tree import build_file_tree

from conftest import FakeEvaluator


def _walk(nodes):
    for node in nodes:
        yield node
        yield from _walk(node.children)


def test_src_include_keeps_src_and_drops_docs(sample_tree):
    verdicts = {"src/a.ts": INCLUDED, "src/b.md": INCLUDED, "docs/readme.md": EXCLUDED}
    result = build_preview_tree(sample_tree, verdicts)

    assert [n.path for n in result.nodes] == ["src"]
    src = result.nodes[0]
    assert src.status == FOLDER and src.has_included_children
    assert [(c.path, c.status) for c in src.children] == [("src/a.ts", INCLUDED), ("src/b.md", INCLUDED)]
    assert result.included_count == 2


def test_excluded_files_stay_visible_inside_kept_folders():
    tree = build_file_tree(["src/a.ts", "src/b.md"])
    result = build_preview_tree(tree, {"src/a.ts": INCLUDED, "src/b.md": EXCLUDED})
    assert [(c.name, c.status) for c in result.nodes[0].children] == [("a.ts", INCLUDED), ("b.md", EXCLUDED)]
    assert result.included_count == 1


def test_nested_folders_without_included_files_are_pruned():
    tree = build_file_tree(["a/b/c/deep.md", "a/keep.ts", "x/y/z.md"])
    result = build_preview_tree(tree, {"a/keep.ts": INCLUDED})
    assert [n.path for n in result.nodes] == ["a"]
    assert [c.path for c in result.nodes[0].children] == ["a/keep.ts"]


def test_top_level_files_are_always_annotated_not_dropped():
    tree = build_file_tree(["README.md", "main.go"])
    result = build_preview_tree(tree, {"main.go": INCLUDED})
    assert [(n.path, n.status) for n in result.nodes] == [("README.md", EXCLUDED), ("main.go", INCLUDED)]


def test_unknown_or_missing_verdicts_count_as_excluded(sample_tree):
    result = build_preview_tree(sample_tree, {"src/a.ts": "maybe"})
    assert result == PreviewResult(nodes=(), included_count=0)


def test_no_dead_folders_leak_into_output():
    tree = build_file_tree(["a/1.md", "a/b/2.ts", "a/b/c/3.md", "d/4.md", "d/e/5.ts", "f.md"])
    verdicts = {"a/b/2.ts": INCLUDED, "d/e/5.ts": INCLUDED}
    for node in _walk(build_preview_tree(tree, verdicts).nodes):
        if node.type == FOLDER:
            assert node.has_included_children
            assert node.status == FOLDER


def test_prune_is_idempotent(sample_tree):
    verdicts = {"src/a.ts": INCLUDED, "docs/readme.md": INCLUDED}
    first = build_preview_tree(sample_tree, verdicts)
    second = build_preview_tree(sample_tree, verdicts)
    assert first == second
    assert prune(sample_tree[0], verdicts) == prune(sample_tree[0], verdicts)


def test_empty_folder_is_pruned():
    from clarion.core.models import FileNode
    assert prune(FileNode("empty", "empty", "empty", FOLDER), {}) is None


def test_compute_preview_exclude_only(sample_tree):
    evaluator = FakeEvaluator(lambda p, inc, exc: not p.endswith(".md"))
    result = asyncio.run(compute_preview(sample_tree, FilterSpec.of([], ["**/*.md"]), evaluator))
    assert result.included_count == 1
    assert evaluator.calls == [(["src/a.ts", "src/b.md", "docs/readme.md"], [], ["**/*.md"])]


def test_compute_preview_empty_tree_skips_evaluator():
    evaluator = FakeEvaluator()
    result = asyncio.run(compute_preview((), FilterSpec.of(["src/**"]), evaluator))
    assert result == PreviewResult()
    assert evaluator.calls == []


def test_compute_preview_evaluator_error_means_nothing_included(sample_tree):
    evaluator = FakeEvaluator(error=RuntimeError("backend down"))
    result = asyncio.run(compute_preview(sample_tree, FilterSpec.of(["src/**"]), evaluator))
    assert result == PreviewResult()
