"""Interactive terminal confirmation gate (prompt_toolkit + rich).

The draft list is rendered as a ``rich`` table and the user types one command
per prompt:

- ``a`` or Enter: confirm the list as shown
- ``e N``: edit draft ``N`` (amount, note, category, date; Enter keeps a value)
- ``t N``: toggle expense/income on draft ``N``
- ``r N``: remove draft ``N``
- ``c``: cancel the import

Positions are 1-based as displayed. An empty list cannot be confirmed; the
user can only cancel. End of input (Ctrl-D) or Ctrl-C also cancels.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.validation import ValidationError, Validator
from rich.console import Console
from rich.table import Table

from .models import DraftTransaction
from .review import apply_edit, remove_at, toggle_direction

_COMMAND_RE = re.compile(r"^\s*(?:(?P<bare>[ac]?)|(?P<verb>[etr])\s+(?P<pos>\d+))\s*$", re.I)

_HELP = "Commands: [a]ccept (Enter), e N edit, t N toggle type, r N remove, c cancel"


class _CommandValidator(Validator):
    """Reject malformed commands and out-of-range positions before submit."""

    def __init__(self, count: int) -> None:
        self._count = count

    def validate(self, document) -> None:
        m = _COMMAND_RE.match(document.text)
        if m is None:
            raise ValidationError(message=_HELP, cursor_position=len(document.text))
        pos = m.group("pos")
        if pos is not None and not 1 <= int(pos) <= self._count:
            raise ValidationError(
                message=f"Position must be between 1 and {self._count}",
                cursor_position=len(document.text),
            )


def render_drafts(drafts: Sequence[DraftTransaction], console: Console) -> None:
    table = Table(title=f"{len(drafts)} draft transaction(s)")
    table.add_column("#", justify="right")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Amount", justify="right")
    table.add_column("Note")
    table.add_column("Category")
    for i, d in enumerate(drafts, start=1):
        table.add_row(
            str(i),
            d.date.strftime("%Y-%m-%d"),
            "[red]expense[/red]" if d.is_expense else "[green]income[/green]",
            f"{d.amount:.2f}",
            d.note or "",
            d.category_hint or "",
        )
    console.print(table)


class TerminalConfirmationGate:
    """Prompt-driven review of drafts before they are committed.

    Parameters
    ----------
    session:
        ``PromptSession`` to read from; tests pass one bound to pipe input.
    console:
        ``rich`` console for the table and status lines.
    """

    def __init__(
        self, *, session: PromptSession | None = None, console: Console | None = None
    ) -> None:
        self._session: PromptSession = session if session is not None else PromptSession()
        self._console = console if console is not None else Console()

    def review(self, drafts: Sequence[DraftTransaction]) -> list[DraftTransaction] | None:
        current = list(drafts)
        try:
            while True:
                render_drafts(current, self._console)
                text = self._session.prompt(
                    "Command (Enter to accept): ",
                    validator=_CommandValidator(len(current)),
                    validate_while_typing=False,
                )
                m = _COMMAND_RE.match(text)
                if m is None:
                    continue
                verb = (m.group("bare") or m.group("verb") or "a").lower()

                if verb == "c":
                    self._console.print("[yellow]Import cancelled.[/yellow]")
                    return None
                if verb == "a":
                    if not current:
                        self._console.print("Nothing left to confirm; type c to cancel.")
                        continue
                    return current

                idx = int(m.group("pos")) - 1
                if verb == "r":
                    current = remove_at(current, idx)
                elif verb == "t":
                    current[idx] = toggle_direction(current[idx])
                else:
                    current[idx] = self._edit(current[idx])
        except (EOFError, KeyboardInterrupt):
            self._console.print("[yellow]Import cancelled.[/yellow]")
            return None

    def _edit(self, draft: DraftTransaction) -> DraftTransaction:
        amount = self._session.prompt("Amount: ", default=f"{draft.amount}")
        note = self._session.prompt("Note: ", default=draft.note or "")
        category = self._session.prompt("Category: ", default=draft.category_hint or "")
        date = self._session.prompt("Date (YYYY-MM-DD): ", default=draft.date.strftime("%Y-%m-%d"))
        changes: dict[str, object] = {"amount": amount, "note": note, "category_hint": category}
        if date.strip() != draft.date.strftime("%Y-%m-%d"):
            changes["date"] = date
        try:
            return apply_edit(draft, **changes)
        except ValueError as e:
            self._console.print(f"[red]Edit rejected:[/red] {e}")
            return draft


__all__ = ["TerminalConfirmationGate", "render_drafts"]
