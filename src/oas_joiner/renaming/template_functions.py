"""Built-in rename template functions."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+")
_SEPARATOR_PATTERN = re.compile(r"[^A-Za-z0-9]+")


def render_value(value: Any) -> str:
    """Render a template value as text; lists join with `_`."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "_".join(render_value(item) for item in value)
    if value is None:
        return ""
    return str(value)


def _as_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [render_value(item) for item in value]
    text = render_value(value)
    return [text] if text else []


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("expected an integer, got a boolean")
    if isinstance(value, int):
        return value
    try:
        return int(render_value(value))
    except ValueError as exc:
        raise ValueError(f"expected an integer, got {value!r}") from exc


def _segments(path: str) -> list[str]:
    return [segment for segment in path.strip("/").split("/") if segment]


def _is_parameter(segment: str) -> bool:
    return segment.startswith("{")


def path_segment(path: Any, index: Any) -> str:
    """Return the segment at `index`; negative indices count from the end."""
    segments = _segments(render_value(path))
    position = _as_int(index)
    if position < 0:
        position += len(segments)
    if 0 <= position < len(segments):
        return segments[position]
    return ""


def path_resource(path: Any) -> str:
    segments = [s for s in _segments(render_value(path)) if not _is_parameter(s)]
    return segments[0] if segments else ""


def path_last(path: Any) -> str:
    segments = [s for s in _segments(render_value(path)) if not _is_parameter(s)]
    return segments[-1] if segments else ""


def path_clean(path: Any) -> str:
    """Turn a path into a name-safe token: `/users/{id}` becomes `users_id`."""
    cleaned = []
    for segment in _segments(render_value(path)):
        if segment.startswith("{") and segment.endswith("}"):
            segment = segment[1:-1]
        cleaned.append(segment.replace("-", "_").replace(".", "_"))
    return "_".join(cleaned)


def first_tag(tags: Any) -> str:
    values = _as_list(tags)
    return values[0] if values else ""


def join_tags(tags: Any, separator: Any = "_") -> str:
    return render_value(separator).join(_as_list(tags))


def has_tag(tags: Any, tag: Any) -> bool:
    return render_value(tag) in _as_list(tags)


def split_words(value: Any) -> list[str]:
    """Split snake, kebab, camel, Pascal or space separated text into words."""
    words: list[str] = []
    for chunk in _SEPARATOR_PATTERN.split(render_value(value)):
        words.extend(_WORD_PATTERN.findall(chunk))
    return words


def pascal_case(value: Any) -> str:
    return "".join(word[:1].upper() + word[1:].lower() for word in split_words(value))


def camel_case(value: Any) -> str:
    pascal = pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def snake_case(value: Any) -> str:
    return "_".join(word.lower() for word in split_words(value))


def kebab_case(value: Any) -> str:
    return "-".join(word.lower() for word in split_words(value))


def default_value(value: Any, fallback: Any) -> Any:
    return value if render_value(value) else fallback


def coalesce(*values: Any) -> Any:
    for value in values:
        if render_value(value):
            return value
    return ""


@dataclass(frozen=True)
class TemplateFunction:
    """Registry entry of a template function and its accepted argument counts."""

    name: str
    implementation: Callable[..., Any]
    min_args: int
    max_args: int | None

    def accepts(self, count: int) -> bool:
        return count >= self.min_args and (self.max_args is None or count <= self.max_args)

    def describe_arity(self) -> str:
        if self.max_args is None:
            return f"at least {self.min_args}"
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args} to {self.max_args}"


def _registry(entries: Sequence[TemplateFunction]) -> Mapping[str, TemplateFunction]:
    return {entry.name: entry for entry in entries}


TEMPLATE_FUNCTIONS: Mapping[str, TemplateFunction] = _registry(
    (
        TemplateFunction("pathSegment", path_segment, 2, 2),
        TemplateFunction("pathResource", path_resource, 1, 1),
        TemplateFunction("pathLast", path_last, 1, 1),
        TemplateFunction("pathClean", path_clean, 1, 1),
        TemplateFunction("firstTag", first_tag, 1, 1),
        TemplateFunction("joinTags", join_tags, 1, 2),
        TemplateFunction("hasTag", has_tag, 2, 2),
        TemplateFunction("pascalCase", pascal_case, 1, 1),
        TemplateFunction("camelCase", camel_case, 1, 1),
        TemplateFunction("snakeCase", snake_case, 1, 1),
        TemplateFunction("kebabCase", kebab_case, 1, 1),
        TemplateFunction("default", default_value, 2, 2),
        TemplateFunction("coalesce", coalesce, 1, None),
    )
)
