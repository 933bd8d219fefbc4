"""File system helpers."""

from __future__ import annotations

import os


def exists(path: str | os.PathLike[str]) -> bool:
    """Report whether anything is present at ``path``.

    Only a definite "no such file" counts as absence; other failures to
    inspect the path report it as present.
    """
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except OSError:
        return True
    return True