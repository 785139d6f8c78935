"""Terminal prompts for the interactive historical loader (prompt_toolkit-based).

Kept apart from the loading workflow so both helpers can be driven by a pipe
input in tests.
"""

from __future__ import annotations

from prompt_toolkit import PromptSession
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.validation import ValidationError, Validator

END_SENTINEL = "END"

_YES = frozenset({"y", "yes", "是"})
_NO = frozenset({"n", "no", "否"})


def _session_like(session: PromptSession | None, kb: KeyBindings | None = None) -> PromptSession:
    if session is None:
        return PromptSession(key_bindings=kb)
    return PromptSession(
        input=getattr(session, "input", None),
        output=getattr(session, "output", None),
        key_bindings=kb,
    )


def read_block_until_end(
    *,
    session: PromptSession | None = None,
    sentinel: str = END_SENTINEL,
    message: str = "> ",
) -> str | None:
    """Collect pasted lines until a line equal to ``sentinel`` (any case).

    Returns the lines joined with ``\\n`` (sentinel excluded), or ``None`` when
    input ends (Ctrl+D) or is interrupted (Ctrl+C) before the sentinel.
    """

    sess = _session_like(session)
    lines: list[str] = []
    while True:
        try:
            line = sess.prompt(message)
        except (EOFError, KeyboardInterrupt):
            return None
        if line.strip().upper() == sentinel.upper():
            return "\n".join(lines)
        lines.append(line)


class _YesNoValidator(Validator):
    def validate(self, document) -> None:
        answer = document.text.strip().lower()
        if answer and answer not in _YES and answer not in _NO:
            raise ValidationError(message="Please answer y or n")


def confirm(
    message: str = "Write these entries to the ledger? (y/N): ",
    *,
    session: PromptSession | None = None,
    default: bool = False,
) -> bool:
    """Ask a yes/no question; Enter alone takes ``default``, Esc or Ctrl+C answers no."""

    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result="n")

    @kb.add("c-c", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result="n")

    sess = _session_like(session, kb)
    try:
        answer = sess.prompt(message, validator=_YesNoValidator(), validate_while_typing=False)
    except EOFError:
        return False
    answer = (answer or "").strip().lower()
    if not answer:
        return default
    return answer in _YES


__all__ = ["END_SENTINEL", "confirm", "read_block_until_end"]
