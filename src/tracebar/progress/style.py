"""Indicator line templates.

A ``ProgressStyle`` turns a template such as::

    "{span_child_prefix}{spinner} {span_name}{{{span_fields}}}"

into one rich ``Text`` line per redraw. Templates use ``str.format`` field
syntax; a field's format spec is read as a rich style, so
``"{spinner:bold green}"`` colours the spinner glyph.

Built-in keys:
- ``spinner``: current frame of the indicator's spinner
- ``elapsed``: whole seconds since the indicator was created

Every other key is resolved by a callback registered with ``with_key``.
Unknown keys and failing callbacks render as empty text, so one bad key
never blanks the rest of the display.
"""

from __future__ import annotations

import string
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from rich.errors import StyleSyntaxError
from rich.spinner import Spinner
from rich.style import Style
from rich.text import Text

from tracebar.foundation.config import DEFAULT_SPINNER, DEFAULT_TEMPLATE
from tracebar.foundation.errors import ErrorCode, progress_error


@dataclass(frozen=True)
class IndicatorState:
    """Per-tick state passed to key callbacks."""

    glyph: str
    elapsed: float


KeyCallback = Callable[[IndicatorState], str]


@dataclass(frozen=True)
class FixedKey:
    """Key callback that always renders the same message."""

    message: str

    def __call__(self, state: IndicatorState) -> str:
        return self.message


@dataclass(frozen=True)
class _Segment:
    literal: str
    key: str | None
    style: Style | None


def _parse_template(template: str) -> tuple[_Segment, ...]:
    try:
        parsed = list(string.Formatter().parse(template))
    except ValueError as e:
        raise progress_error(
            ErrorCode.TEMPLATE_INVALID, template=template, detail=str(e)
        ) from e

    segments = []
    for literal, key, spec, _conversion in parsed:
        style = None
        if spec:
            try:
                style = Style.parse(spec)
            except StyleSyntaxError as e:
                raise progress_error(
                    ErrorCode.TEMPLATE_INVALID, template=template, detail=str(e)
                ) from e
        segments.append(_Segment(literal=literal, key=key, style=style))
    return tuple(segments)


class ProgressStyle:
    """Template plus key callbacks for rendering indicator lines.

    Styles are immutable; ``with_key``/``with_spinner`` return copies, so a
    shared base style can be specialised per indicator.
    """

    def __init__(
        self,
        template: str = DEFAULT_TEMPLATE,
        *,
        spinner: str = DEFAULT_SPINNER,
        keys: Mapping[str, KeyCallback] | None = None,
    ) -> None:
        self._template = template
        self._segments = _parse_template(template)
        self._spinner = spinner
        self._keys: dict[str, KeyCallback] = dict(keys or {})
        self.make_spinner()  # validate name eagerly

    @classmethod
    def with_template(cls, template: str, *, spinner: str = DEFAULT_SPINNER) -> ProgressStyle:
        return cls(template, spinner=spinner)

    def __repr__(self) -> str:
        return f"ProgressStyle({self._template!r}, spinner={self._spinner!r})"

    @property
    def template(self) -> str:
        return self._template

    @property
    def spinner(self) -> str:
        return self._spinner

    @property
    def keys(self) -> frozenset[str]:
        """Names of the keys referenced by the template."""
        return frozenset(s.key for s in self._segments if s.key)

    def with_key(self, name: str, callback: KeyCallback) -> ProgressStyle:
        """Copy of this style with an extra key callback."""
        return ProgressStyle(
            self._template,
            spinner=self._spinner,
            keys={**self._keys, name: callback},
        )

    def with_spinner(self, name: str) -> ProgressStyle:
        return ProgressStyle(self._template, spinner=name, keys=self._keys)

    def make_spinner(self) -> Spinner:
        """Fresh spinner animation for one indicator."""
        try:
            return Spinner(self._spinner)
        except KeyError as e:
            raise progress_error(
                ErrorCode.TEMPLATE_INVALID,
                template=self._template,
                detail=f"no spinner called {self._spinner!r}",
            ) from e

    def render(self, state: IndicatorState) -> Text:
        """Render one line for the given tick state."""
        line = Text(no_wrap=True, overflow="ellipsis")
        for segment in self._segments:
            if segment.literal:
                line.append(segment.literal)
            if segment.key is None:
                continue
            value = self._resolve(segment.key, state)
            if value:
                line.append(value, style=segment.style)
        return line

    def _resolve(self, key: str, state: IndicatorState) -> str:
        if key == "spinner":
            return state.glyph
        if key == "elapsed":
            return f"{int(state.elapsed)}s"

        callback = self._keys.get(key)
        if callback is None:
            return ""
        # Rendering runs under the display lock, so failures are not logged
        try:
            return str(callback(state))
        except Exception:
            return ""
