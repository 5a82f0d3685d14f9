# src/mdscope/core/tree.py
from typing import Dict, Iterable

from mdscope.models import FileEntry
from mdscope.utils.formatting import natural_key


def generate_project_tree(entries: Iterable[FileEntry], root_name: str) -> str:
    """Renders scanned entries as an indented tree, folders and files in natural order."""
    tree_dict: Dict = {}
    for entry in entries:
        current_level = tree_dict
        for part in entry.relative_path.split("/"):
            current_level = current_level.setdefault(part, {})

    lines = [f"{root_name}/"]

    def _generate_lines_recursive(subtree: Dict, prefix: str):
        # Folders first, like the sidebar tree
        entries_sorted = sorted(subtree.items(), key=lambda item: (not item[1], natural_key(item[0])))
        for i, (name, children) in enumerate(entries_sorted):
            is_last = (i == len(entries_sorted) - 1)
            connector = "└── " if is_last else "├── "
            lines.append(f"{prefix}{connector}{name}{'/' if children else ''}")

            if children:
                new_prefix = prefix + ("    " if is_last else "│   ")
                _generate_lines_recursive(children, new_prefix)

    _generate_lines_recursive(tree_dict, "")
    return "\n".join(lines) + "\n"
