"""Per-package disclosure (expanded/collapsed) state for the forward tree view."""

from __future__ import annotations

from pkgtree.core.catalog import normalize_name


class ExpandStateStore:
    """
    Whether each package node currently shows its children.

    Keyed by normalized package name rather than by any loaded object, so the
    state survives a catalog reload unless ``reset`` is called.
    """

    def __init__(self) -> None:
        self._disclosed: dict[str, bool] = {}

    def is_disclosed(self, name: str) -> bool:
        return self._disclosed.get(normalize_name(name), False)

    def toggle(self, name: str) -> bool:
        """Flip the flag for ``name`` (absent counts as collapsed); return the new value."""
        key = normalize_name(name)
        value = not self._disclosed.get(key, False)
        self._disclosed[key] = value
        return value

    def set_disclosed(self, name: str, value: bool) -> None:
        self._disclosed[normalize_name(name)] = bool(value)

    def reset(self) -> None:
        """Collapse everything."""
        self._disclosed.clear()

    def disclosed_names(self) -> list[str]:
        return [key for key, value in self._disclosed.items() if value]

    def __len__(self) -> int:
        return len(self._disclosed)
