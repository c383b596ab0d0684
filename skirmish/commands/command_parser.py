"""
Symbol-based command parsing.

Chat messages carry commands as short symbols followed by whitespace-delimited
parameters, e.g. ``🗡️ Bob``. The symbol table maps each symbol to an action
name and keeps a precompiled trie so scanning always takes the longest symbol
matching at a position.
"""

from dataclasses import dataclass, field

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

_TERMINAL = "\0"


@dataclass(frozen=True)
class ParsedCommand:
    """One command found in a message."""

    action: str
    symbol: str
    params: tuple[str, ...] = ()

    @property
    def target(self) -> str:
        return " ".join(self.params).strip()


@dataclass
class ParsedCommands:
    """Commands found in a message and the message text with them removed."""

    commands: list[ParsedCommand] = field(default_factory=list)
    clean_text: str = ""
    command_lines: list[str] = field(default_factory=list)


class SymbolTable:
    """
    Mapping from command symbols to action names.

    Each symbol resolves to exactly one action. The trie is rebuilt lazily and
    only after the set of bindings changes.
    """

    def __init__(self, bindings: dict[str, str] | None = None) -> None:
        self._bindings: dict[str, str] = dict(bindings or {})
        self._trie: dict | None = None

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    @property
    def bindings(self) -> dict[str, str]:
        return dict(self._bindings)

    def bind(self, symbol: str, action: str) -> None:
        """Bind a symbol to an action, replacing any previous binding of that symbol."""
        if not symbol or symbol.isspace():
            raise ValueError("Command symbol must not be empty")
        if self._bindings.get(symbol) == action:
            return
        self._bindings[symbol] = action
        self._trie = None

    def unbind_action(self, action: str) -> list[str]:
        """Remove every symbol bound to an action, returning the removed symbols."""
        removed = [symbol for symbol, bound in self._bindings.items() if bound == action]
        for symbol in removed:
            del self._bindings[symbol]
        if removed:
            self._trie = None
        return removed

    def action_for(self, symbol: str) -> str | None:
        return self._bindings.get(symbol)

    def symbol_for(self, action: str) -> str | None:
        """Return the symbol bound to an action; the most recent binding wins."""
        found = None
        for symbol, bound in self._bindings.items():
            if bound == action:
                found = symbol
        return found

    def with_overrides(self, overrides: dict[str, str]) -> "SymbolTable":
        """
        Return a copy with action-to-symbol overrides applied.

        An override removes every existing symbol of its action before binding
        the new one, so each overridden action answers to exactly one symbol.
        """
        table = SymbolTable(self._bindings)
        for action, symbol in overrides.items():
            if not symbol:
                continue
            table.unbind_action(action)
            table.bind(symbol, action)
        return table

    def _compile(self) -> dict:
        trie: dict = {}
        for symbol, action in self._bindings.items():
            node = trie
            for char in symbol:
                node = node.setdefault(char, {})
            node[_TERMINAL] = action
        logger.debug("Symbol trie compiled", symbols=len(self._bindings))
        return trie

    def match_at(self, text: str, pos: int) -> str | None:
        """Return the longest symbol starting at ``pos``, or None."""
        if self._trie is None:
            self._trie = self._compile()
        node = self._trie
        longest_end = -1
        i = pos
        while i < len(text) and text[i] in node:
            node = node[text[i]]
            i += 1
            if _TERMINAL in node:
                longest_end = i
        if longest_end < 0:
            return None
        return text[pos:longest_end]

    def _symbol_starts(self, text: str) -> list[tuple[int, str]]:
        """Non-overlapping symbol matches that start a word."""
        starts: list[tuple[int, str]] = []
        i = 0
        while i < len(text):
            if i == 0 or text[i - 1].isspace():
                symbol = self.match_at(text, i)
                if symbol is not None:
                    starts.append((i, symbol))
                    i += len(symbol)
                    continue
            i += 1
        return starts

    def extract_commands(self, text: str | None) -> ParsedCommands:
        """
        Find every command in a message.

        A command is a symbol at the start of a word followed by parameters up
        to the next symbol or the end of the line.
        """
        if not text:
            return ParsedCommands(clean_text=text or "")
        if not self._bindings:
            return ParsedCommands(clean_text=text)

        commands: list[ParsedCommand] = []
        command_lines: list[str] = []
        kept: list[str] = []
        cursor = 0
        starts = self._symbol_starts(text)
        for index, (start, symbol) in enumerate(starts):
            kept.append(text[cursor:start])
            end = self._params_end(text, start + len(symbol), starts[index + 1][0] if index + 1 < len(starts) else None)
            raw_params = text[start + len(symbol) : end]
            params: tuple[str, ...] = ()
            if raw_params[:1].isspace():
                params = tuple(raw_params.split())
            else:
                # Text glued to the symbol is not a parameter
                end = start + len(symbol)
            commands.append(ParsedCommand(action=self._bindings[symbol], symbol=symbol, params=params))
            command_lines.append(text[start:end].strip())
            cursor = end
        kept.append(text[cursor:])

        clean_lines = [" ".join(line.split()) for line in "".join(kept).splitlines()]
        clean_text = "\n".join(line for line in clean_lines if line)
        return ParsedCommands(commands=commands, clean_text=clean_text, command_lines=command_lines)

    def _params_end(self, text: str, start: int, next_start: int | None) -> int:
        """Parameters stop at a line break, at any symbol, or at the next command."""
        limit = next_start if next_start is not None else len(text)
        newline = text.find("\n", start, limit)
        if newline >= 0:
            limit = newline
        for i in range(start, limit):
            if self.match_at(text, i) is not None:
                return i
        return limit
