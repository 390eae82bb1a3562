from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from sitehost.infra.object_store import StoredObject


@dataclass
class FolderNode:
    name: str
    path: str
    children: list[TreeNode] = field(default_factory=list)


@dataclass(frozen=True)
class FileLeaf:
    name: str
    path: str
    size: int
    last_modified: str | None


TreeNode = FolderNode | FileLeaf


def _sort_key(node: TreeNode) -> tuple[int, str]:
    return (0 if isinstance(node, FolderNode) else 1, node.name)


def _sort(nodes: list[TreeNode]) -> list[TreeNode]:
    for n in nodes:
        if isinstance(n, FolderNode):
            n.children = _sort(n.children)
    return sorted(nodes, key=_sort_key)


def build_tree(entries: Iterable[StoredObject]) -> list[TreeNode]:
    """Turn flat object paths into a folder/file hierarchy.

    Intermediate folders are synthesized from the leaf paths. Every level is
    ordered folders first, then by name, so the result does not depend on
    the order of `entries`.
    """

    root: list[TreeNode] = []
    folders: dict[str, FolderNode] = {}

    for entry in entries:
        parts = [p for p in entry.path.split("/") if p]
        if not parts:
            continue
        siblings = root
        for depth, part in enumerate(parts[:-1]):
            folder_path = "/".join(parts[: depth + 1])
            folder = folders.get(folder_path)
            if folder is None:
                folder = FolderNode(name=part, path=folder_path)
                folders[folder_path] = folder
                siblings.append(folder)
            siblings = folder.children
        siblings.append(
            FileLeaf(
                name=parts[-1],
                path="/".join(parts),
                size=entry.size,
                last_modified=entry.last_modified,
            )
        )

    return _sort(root)


def collect_leaf_paths(node: TreeNode) -> list[str]:
    if isinstance(node, FileLeaf):
        return [node.path]
    out: list[str] = []
    for child in node.children:
        out.extend(collect_leaf_paths(child))
    return out


def find_node(nodes: list[TreeNode], path: str) -> TreeNode | None:
    parts = [p for p in path.split("/") if p]
    current: list[TreeNode] = nodes
    found: TreeNode | None = None
    for part in parts:
        found = next((n for n in current if n.name == part), None)
        if found is None:
            return None
        current = found.children if isinstance(found, FolderNode) else []
    return found


def tree_to_dict(nodes: list[TreeNode]) -> list[dict[str, object]]:
    out: list[dict[str, object]] = []
    for n in nodes:
        if isinstance(n, FolderNode):
            out.append(
                {"type": "folder", "name": n.name, "path": n.path, "children": tree_to_dict(n.children)}
            )
        else:
            out.append(
                {
                    "type": "file",
                    "name": n.name,
                    "path": n.path,
                    "size": n.size,
                    "last_modified": n.last_modified,
                }
            )
    return out
