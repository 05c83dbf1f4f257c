from __future__ import annotations

from typing import Sequence, cast

import questionary
from prompt_toolkit.keys import Keys
from questionary import Style

PICKER_STYLE = Style(
    [
        ("qmark", "fg:#e5a50a bold"),
        ("question", "bold"),
        ("pointer", "fg:#e5a50a bold"),
        ("highlighted", "fg:#e5a50a"),
        ("selected", "fg:#26a269"),
        ("instruction", "fg:#9a9996 italic"),
    ]
)


def _cancel_on_escape(question: questionary.Question) -> questionary.Question:
    """Make Esc end the prompt with no answer, like Ctrl+C does."""

    bindings = getattr(question.application, "key_bindings", None)
    if bindings is None or not hasattr(bindings, "add"):
        return question

    @bindings.add(Keys.Escape, eager=True)
    def _(event):
        event.app.exit(result=None)

    return question


def _select_languages(languages: Sequence[str], title: str) -> list[str] | None:
    """Let the user tick languages; returns None when cancelled, keeps the given order."""

    if not languages:
        questionary.print("No <language>.po files were found.", style="bold fg:red")
        return None

    prompt = questionary.checkbox(
        f"{title} (Space to toggle, Enter to confirm, Esc to cancel):",
        choices=[questionary.Choice(title=lang, value=lang, checked=True) for lang in languages],
        qmark="?",
        instruction="",
        style=PICKER_STYLE,
    )
    selected = _cancel_on_escape(prompt).ask(kbi_msg="")
    if selected is None:
        return None

    chosen = set(cast(list[str], selected))
    return [lang for lang in languages if lang in chosen]
