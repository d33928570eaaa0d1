from __future__ import annotations

from typing import Any, List, Sequence

from prompt_toolkit.application import Application
from prompt_toolkit.data_structures import Point
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import Layout
from prompt_toolkit.layout.containers import HSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import TextArea

from ..core.ranking import rank, split_keywords

PLACEHOLDER = "Select a file, or type keywords to search"


class PickerState:
    """Query, ranked items and selection of one picker session."""

    def __init__(self, candidates: Sequence[str], *, limit: int = 200) -> None:
        self.candidates = tuple(candidates)
        self.limit = limit
        self.query = ""
        self.items: List[str] = list(self.candidates)
        self.selected = 0

    def set_query(self, text: str) -> None:
        self.query = text
        self.items = rank(self.candidates, split_keywords(text))
        self.selected = 0

    @property
    def visible(self) -> List[str]:
        return self.items[: self.limit]

    def move(self, delta: int) -> None:
        if not self.visible:
            self.selected = 0
            return
        self.selected = max(0, min(len(self.visible) - 1, self.selected + delta))

    @property
    def selected_path(self) -> str | None:
        if not self.visible:
            return None
        return self.visible[self.selected]

    def status(self) -> str:
        shown = len(self.visible)
        total = len(self.items)
        if total > shown:
            return f"{shown} of {total} matches (of {len(self.candidates)} files)"
        return f"{total}/{len(self.candidates)}"


class FilePicker:
    """Interactive list of candidate files re-ranked on every keystroke."""

    def __init__(
        self,
        candidates: Sequence[str],
        *,
        title: str | None = None,
        limit: int = 200,
        height: int = 15,
        **app_options: Any,
    ) -> None:
        self.state = PickerState(candidates, limit=limit)
        self.title = title
        self.height = height
        self.app_options = app_options
        self.app: Application | None = None

    def _list_fragments(self) -> list[tuple[str, str]]:
        lines: list[tuple[str, str]] = []
        if not self.state.visible:
            lines.append(("class:empty", "  No matching files"))
            return lines
        for idx, path in enumerate(self.state.visible):
            marker = ">" if idx == self.state.selected else " "
            style = "class:selected" if idx == self.state.selected else "class:choice"
            lines.append((style, f"{marker} {path}\n"))
        return lines

    def _header_fragments(self) -> list[tuple[str, str]]:
        lines: list[tuple[str, str]] = []
        if self.title:
            lines.append(("class:title", f"{self.title}\n"))
        lines.append(
            (
                "class:hint",
                f"{self.state.status()}  ·  ↑/↓ to select, Enter to open, Esc/Ctrl+C to cancel",
            )
        )
        return lines

    def build(self) -> Application:
        search = TextArea(
            height=1,
            prompt="> ",
            multiline=False,
            wrap_lines=False,
            focus_on_click=True,
        )
        search.buffer.on_text_changed += lambda buffer: self.state.set_query(buffer.text)

        results = Window(
            FormattedTextControl(
                self._list_fragments,
                get_cursor_position=lambda: Point(0, self.state.selected),
                show_cursor=False,
            ),
            height=Dimension(min=1, max=self.height),
        )
        header = Window(
            FormattedTextControl(self._header_fragments),
            dont_extend_height=True,
        )
        placeholder = Window(
            FormattedTextControl(
                lambda: [("class:placeholder", PLACEHOLDER)] if not search.text else []
            ),
            height=1,
        )
        layout = Layout(HSplit([header, search, placeholder, results]), focused_element=search)
        bindings = KeyBindings()

        @bindings.add("up")
        @bindings.add("c-p")
        def _up(event) -> None:  # type: ignore[no-untyped-def]
            self.state.move(-1)
            event.app.invalidate()

        @bindings.add("down")
        @bindings.add("c-n")
        def _down(event) -> None:  # type: ignore[no-untyped-def]
            self.state.move(1)
            event.app.invalidate()

        @bindings.add("pageup")
        def _page_up(event) -> None:  # type: ignore[no-untyped-def]
            self.state.move(-self.height)
            event.app.invalidate()

        @bindings.add("pagedown")
        def _page_down(event) -> None:  # type: ignore[no-untyped-def]
            self.state.move(self.height)
            event.app.invalidate()

        @bindings.add("enter")
        def _accept(event) -> None:  # type: ignore[no-untyped-def]
            event.app.exit(result=self.state.selected_path)

        @bindings.add("escape")
        def _cancel(event) -> None:  # type: ignore[no-untyped-def]
            event.app.exit(result=None)

        @bindings.add("c-c")
        def _cancel_sigint(event) -> None:  # type: ignore[no-untyped-def]
            event.app.exit(result=None)

        style = Style.from_dict(
            {
                "title": "bold",
                "hint": "#888888",
                "placeholder": "#666666 italic",
                "choice": "",
                "selected": "reverse",
                "empty": "#888888",
            }
        )
        self.app = Application(
            layout=layout,
            key_bindings=bindings,
            mouse_support=False,
            full_screen=False,
            style=style,
            **self.app_options,
        )
        return self.app

    async def run(self) -> str | None:
        """Show the picker and return the accepted path, or None when cancelled."""
        app = self.build()
        return await app.run_async()
