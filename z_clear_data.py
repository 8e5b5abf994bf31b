#!/usr/bin/env python3
"""
Remove local state: Python caches, SQLite databases and log files
"""

from pathlib import Path
import shutil

PATTERNS = (
    ('__pycache__ directories', '__pycache__'),
    ('.db files', '*.db'),
    ('.pyc files', '*.pyc'),
    ('.log files', '*.log'),
)


def _remove(path):
    if path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink()


def clear_data(root=None):
    """Recursively delete caches, databases and logs below ``root`` (default: cwd)."""
    root = Path(root) if root else Path.cwd()
    print(f"=== Cleaning {root} ===")

    counts = {}
    for label, pattern in PATTERNS:
        removed = 0
        for path in root.rglob(pattern):
            if not path.exists():
                continue
            try:
                _remove(path)
                print(f"   removed: {path}")
                removed += 1
            except OSError as e:
                print(f"   failed to remove {path}: {e}")
        counts[label] = removed

    print("\n=== Cleanup complete ===")
    for label, removed in counts.items():
        print(f"  - {label}: {removed}")
    return sum(counts.values())


if __name__ == '__main__':
    clear_data()
