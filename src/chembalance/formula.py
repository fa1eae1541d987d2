"""Chemical formula tokenizer and recursive-descent parser.

A formula is a sequence of element symbols and parenthesised groups, each
optionally followed by a count::

    Ca(OH)2  ->  {"Ca": 1, "O": 2, "H": 2}

Parse failures never escape :func:`parse_chemical_formula`; they are
reported through :class:`~chembalance.models.ParsedFormula.error`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Literal

from chembalance import constants
from chembalance.config import DEFAULT_LIMITS, ParserLimits
from chembalance.models import ParsedElement, ParsedFormula
from chembalance.periodic import ElementLookup, load_periodic_table

logger = logging.getLogger(__name__)

TokenKind = Literal["element", "number", "open-paren", "close-paren"]

BASIC_FORMULA = re.compile(
    r"^[A-Z][a-z]?\d*"
    r"(\([A-Z][a-z]?\d*\)\d*|\([A-Z][a-z]?\d*([A-Z][a-z]?\d*)*\)\d*|[A-Z][a-z]?\d*)*$"
)
_NORMALIZED_CHARS = re.compile(r"^[A-Za-z0-9()]+$")


class FormulaSyntaxError(ValueError):
    """Raised inside the parser; converted to an invalid ParsedFormula."""


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    position: int


def tokenize(formula: str) -> tuple[Token, ...]:
    """Split ``formula`` into tokens.

    Returns an empty tuple if the formula contains a character that is not an
    element letter, digit, parenthesis or whitespace.
    """
    tokens: list[Token] = []
    position = 0
    length = len(formula)

    while position < length:
        char = formula[position]
        start = position

        if "A" <= char <= "Z":
            symbol = char
            if position + 1 < length and "a" <= formula[position + 1] <= "z":
                position += 1
                symbol += formula[position]
            tokens.append(Token("element", symbol, start))
        elif char.isdigit() and char.isascii():
            while (
                position + 1 < length
                and formula[position + 1].isdigit()
                and formula[position + 1].isascii()
            ):
                position += 1
            tokens.append(Token("number", formula[start : position + 1], start))
        elif char == "(":
            tokens.append(Token("open-paren", char, start))
        elif char == ")":
            tokens.append(Token("close-paren", char, start))
        elif not char.isspace():
            return ()

        position += 1

    return tuple(tokens)


@dataclass
class _ParserState:
    tokens: tuple[Token, ...]
    position: int = 0

    def peek(self) -> Token | None:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def advance(self) -> Token:
        token = self.tokens[self.position]
        self.position += 1
        return token

    def at_end(self) -> bool:
        return self.position >= len(self.tokens)


def _read_count(state: _ParserState, limits: ParserLimits) -> int:
    token = state.peek()
    if token is None or token.kind != "number":
        return 1
    state.advance()
    count = int(token.value)
    if count <= 0 or count > limits.max_atoms_per_molecule:
        raise FormulaSyntaxError(f"{constants.COUNT_OUT_OF_RANGE}: {count}")
    return count


def _parse_group(state: _ParserState, lookup: ElementLookup, limits: ParserLimits) -> dict[str, int]:
    elements: dict[str, int] = {}

    while not state.at_end():
        token = state.peek()
        if token.kind == "element":
            state.advance()
            if not lookup.is_valid_element(token.value):
                raise FormulaSyntaxError(f"{constants.INVALID_ELEMENT}: {token.value}")
            count = _read_count(state, limits)
            elements[token.value] = elements.get(token.value, 0) + count
        elif token.kind == "open-paren":
            state.advance()
            group = _parse_group(state, lookup, limits)
            closing = state.peek()
            if closing is None or closing.kind != "close-paren":
                raise FormulaSyntaxError(f"{constants.INVALID_SYNTAX}: unmatched '('")
            state.advance()
            if not group:
                raise FormulaSyntaxError(f"{constants.INVALID_SYNTAX}: empty group")
            multiplier = _read_count(state, limits)
            for symbol, count in group.items():
                elements[symbol] = elements.get(symbol, 0) + count * multiplier
        elif token.kind == "close-paren":
            break
        else:
            raise FormulaSyntaxError(
                f"{constants.INVALID_SYNTAX}: unexpected '{token.value}' at {token.position}"
            )

    return elements


def _invalid(formula: str, error: str) -> ParsedFormula:
    return ParsedFormula(elements=(), formula=formula, is_valid=False, error=error)


def parse_chemical_formula(
    formula: str,
    lookup: ElementLookup | None = None,
    limits: ParserLimits | None = None,
) -> ParsedFormula:
    """Parse a formula into element counts in first-occurrence order."""
    if lookup is None:
        lookup = load_periodic_table()
    limits = limits or DEFAULT_LIMITS

    if not formula or not formula.strip():
        return _invalid("", constants.EMPTY_FORMULA)

    clean = formula.strip()
    if len(clean) > limits.max_formula_length:
        return _invalid(clean, constants.FORMULA_TOO_LONG)

    tokens = tokenize(clean)
    if not tokens:
        return _invalid(clean, constants.INVALID_SYNTAX)

    state = _ParserState(tokens)
    try:
        counts = _parse_group(state, lookup, limits)
        if not state.at_end():
            token = state.peek()
            raise FormulaSyntaxError(
                f"{constants.INVALID_SYNTAX}: unexpected '{token.value}' at {token.position}"
            )
    except FormulaSyntaxError as exc:
        logger.debug("Rejected formula %r: %s", clean, exc)
        return _invalid(clean, str(exc))

    if sum(counts.values()) > limits.max_atoms_per_molecule:
        return _invalid(clean, constants.COUNT_OUT_OF_RANGE)

    elements = tuple(ParsedElement(symbol=s, count=c) for s, c in counts.items())
    return ParsedFormula(elements=elements, formula=clean, is_valid=True)


def validate_formula_syntax(formula: str) -> bool:
    """Cheap structural check: basic shape and balanced parentheses."""
    if not formula or not formula.strip():
        return False

    clean = formula.strip()
    if not BASIC_FORMULA.match(clean):
        return False

    depth = 0
    for char in clean:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def normalize_formula(formula: str) -> str:
    """Strip all whitespace; return "" if anything but letters, digits and parentheses remain."""
    if not formula:
        return ""
    normalized = re.sub(r"\s+", "", formula)
    if not _NORMALIZED_CHARS.match(normalized):
        return ""
    return normalized


def extract_elements(formula: str, lookup: ElementLookup | None = None) -> list[str]:
    parsed = parse_chemical_formula(formula, lookup)
    return [element.symbol for element in parsed.elements]


def get_total_atom_count(formula: str, lookup: ElementLookup | None = None) -> int:
    parsed = parse_chemical_formula(formula, lookup)
    return sum(element.count for element in parsed.elements)


def contains_element(formula: str, symbol: str, lookup: ElementLookup | None = None) -> bool:
    return symbol in extract_elements(formula, lookup)


def get_element_count(formula: str, symbol: str, lookup: ElementLookup | None = None) -> int:
    return parse_chemical_formula(formula, lookup).as_dict().get(symbol, 0)


def formulas_have_same_elements(
    first: str, second: str, lookup: ElementLookup | None = None
) -> bool:
    return set(extract_elements(first, lookup)) == set(extract_elements(second, lookup))


def multiply_formula(
    formula: str, coefficient: int, lookup: ElementLookup | None = None
) -> list[ParsedElement]:
    parsed = parse_chemical_formula(formula, lookup)
    if not parsed.is_valid or coefficient <= 0:
        return []
    return [ParsedElement(e.symbol, e.count * coefficient) for e in parsed.elements]


def combine_formulas(
    formulas: Iterable[tuple[str, int]], lookup: ElementLookup | None = None
) -> list[ParsedElement]:
    """Total element counts of ``(formula, coefficient)`` pairs."""
    combined: dict[str, int] = {}
    for formula, coefficient in formulas:
        for element in multiply_formula(formula, coefficient, lookup):
            combined[element.symbol] = combined.get(element.symbol, 0) + element.count
    return [ParsedElement(symbol, count) for symbol, count in combined.items()]


def parsing_debug_info(formula: str, lookup: ElementLookup | None = None) -> dict[str, Any]:
    parsed = parse_chemical_formula(formula, lookup)
    return {
        "original_formula": formula,
        "normalized_formula": normalize_formula(formula),
        "tokens": [
            {"kind": t.kind, "value": t.value, "position": t.position}
            for t in tokenize(formula)
        ],
        "is_valid": parsed.is_valid,
        "error": parsed.error,
        "elements": parsed.as_dict(),
        "is_valid_syntax": validate_formula_syntax(formula),
        "total_atoms": sum(parsed.as_dict().values()),
    }
