"""Tracks the current XML element nesting while streaming a document."""

from functools import lru_cache


@lru_cache(maxsize=None)
def _segments(template: str) -> tuple[str, ...]:
    """Split a path template like "/wet/testcase" into its element names."""
    return tuple(s for s in template.split('/') if s)


class ElementPath:
    """The stack of element names from the document root to the current element.

    Templates are written as slash separated element names ("/wet/testcase").
    All queries compare whole segments, so "/testfile" never matches an
    element called "subtestfile".
    """

    def __init__(self):
        self._names: list[str] = []

    def push(self, name: str):
        self._names.append(name)

    def pop(self) -> str:
        # popping past the root is a bug in the caller, let IndexError surface
        return self._names.pop()

    def matches(self, template: str) -> bool:
        return tuple(self._names) == _segments(template)

    def starts_with(self, template: str) -> bool:
        prefix = _segments(template)
        return tuple(self._names[:len(prefix)]) == prefix

    def ends_with(self, template: str) -> bool:
        suffix = _segments(template)
        if len(suffix) > len(self._names):
            return False
        return tuple(self._names[len(self._names) - len(suffix):]) == suffix

    def __len__(self) -> int:
        return len(self._names)

    def __str__(self) -> str:
        return '/' + '/'.join(self._names)

    def __repr__(self) -> str:
        return f"ElementPath({str(self)!r})"
