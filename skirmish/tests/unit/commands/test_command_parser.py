"""
Unit tests for symbol parsing.
"""

import pytest

from skirmish.commands.command_parser import ParsedCommand, SymbolTable

# pylint: disable=redefined-outer-name  # Reason: pytest fixture parameter names must match fixture names

SWORD = "🗡️"
SHIELD = "🛡️"


@pytest.fixture
def table() -> SymbolTable:
    return SymbolTable({SWORD: "attack", SHIELD: "defend", "🏃": "flee"})


def test_single_command_with_target(table):
    parsed = table.extract_commands(f"{SWORD} Bob")
    assert parsed.commands == [ParsedCommand(action="attack", symbol=SWORD, params=("Bob",))]
    assert parsed.commands[0].target == "Bob"
    assert parsed.clean_text == ""
    assert parsed.command_lines == [f"{SWORD} Bob"]


def test_commands_are_removed_from_surrounding_text(table):
    parsed = table.extract_commands(f"take that   {SWORD} Bob the Brave\nand run")
    assert [c.params for c in parsed.commands] == [("Bob", "the", "Brave")]
    assert parsed.clean_text == "take that\nand run"


def test_several_commands_on_one_line(table):
    parsed = table.extract_commands(f"{SHIELD} {SWORD} Bob")
    assert [(c.action, c.params) for c in parsed.commands] == [("defend", ()), ("attack", ("Bob",))]


def test_text_glued_to_a_symbol_is_not_a_parameter(table):
    parsed = table.extract_commands(f"{SWORD}Bob")
    assert parsed.commands[0].params == ()
    assert parsed.clean_text == "Bob"


def test_symbol_inside_a_word_is_ignored(table):
    parsed = table.extract_commands(f"a{SWORD} Bob")
    assert parsed.commands == []
    assert parsed.clean_text == f"a{SWORD} Bob"


def test_longest_symbol_wins():
    table = SymbolTable({"🗡": "poke", SWORD: "attack"})
    assert table.match_at(f"{SWORD} Bob", 0) == SWORD
    assert table.extract_commands("🗡 Bob").commands[0].action == "poke"
    assert table.extract_commands(f"{SWORD} Bob").commands[0].action == "attack"


def test_empty_and_unbound_text():
    assert SymbolTable().extract_commands(f"{SWORD} Bob").commands == []
    parsed = SymbolTable({SWORD: "attack"}).extract_commands("")
    assert parsed.commands == []
    assert parsed.clean_text == ""


def test_overrides_replace_the_action_symbol(table):
    custom = table.with_overrides({"attack": "!a", "flee": ""})

    assert custom.action_for("!a") == "attack"
    assert SWORD not in custom
    assert custom.symbol_for("flee") == "🏃"
    assert table.action_for(SWORD) == "attack"
    assert custom.extract_commands("!a Bob").commands[0].action == "attack"


def test_latest_binding_is_the_action_symbol(table):
    table.bind("⚔", "attack")
    assert table.symbol_for("attack") == "⚔"
    assert sorted(table.unbind_action("attack")) == sorted([SWORD, "⚔"])
    assert table.symbol_for("attack") is None


@pytest.mark.parametrize("symbol", ["", "  "])
def test_blank_symbols_rejected(table, symbol):
    with pytest.raises(ValueError):
        table.bind(symbol, "wave")
