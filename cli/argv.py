"""Raw argument lexer.

Splits argv into positional tokens and flags, in the spirit of minimist:

* ``--name value`` and ``--name=value`` set ``flags["name"]``
* a ``--name`` or ``-n`` with no following value is ``True``
* ``-abc`` sets ``a`` and ``b`` to True and gives ``c`` the next value
* everything after ``--`` is positional

Dashes inside long flag names become underscores (``--no-exe-cf`` is
``no_exe_cf``). Repeating a flag collects its values into a list.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence


@dataclass
class RawArgs:
    """Lexed command line."""

    positionals: List[str] = field(default_factory=list)
    flags: Dict[str, Any] = field(default_factory=dict)

    def flag(self, *names: str) -> Any:
        """First present flag among ``names``, else None."""
        for name in names:
            if name in self.flags:
                return self.flags[name]
        return None


def _is_flag(token: str) -> bool:
    return token.startswith("-") and token != "-" and not _is_number(token)


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def _set(flags: Dict[str, Any], name: str, value: Any) -> None:
    if name in flags:
        current = flags[name]
        flags[name] = current + [value] if isinstance(current, list) else [current, value]
    else:
        flags[name] = value


def parse_argv(argv: Sequence[str]) -> RawArgs:
    """Lex ``argv`` (without the program name)."""
    raw = RawArgs()
    tokens = list(argv)
    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1

        if token == "--":
            raw.positionals.extend(tokens[i:])
            break

        if token.startswith("--"):
            name, sep, value = token[2:].partition("=")
            name = name.replace("-", "_")
            if sep:
                _set(raw.flags, name, value)
            elif i < len(tokens) and not _is_flag(tokens[i]):
                _set(raw.flags, name, tokens[i])
                i += 1
            else:
                _set(raw.flags, name, True)
        elif _is_flag(token):
            letters = token[1:]
            for letter in letters[:-1]:
                _set(raw.flags, letter, True)
            if i < len(tokens) and not _is_flag(tokens[i]):
                _set(raw.flags, letters[-1], tokens[i])
                i += 1
            else:
                _set(raw.flags, letters[-1], True)
        else:
            raw.positionals.append(token)

    return raw
