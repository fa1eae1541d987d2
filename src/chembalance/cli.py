"""Command-line entrypoints for chembalance."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Dict

import typer

from chembalance import constants
from chembalance.balancers import balance_chemical_equation
from chembalance.config import DEFAULT_CONFIGURATION, BalancerConfiguration, load_configuration
from chembalance.formula import parse_chemical_formula, validate_formula_syntax
from chembalance.molar_mass import calculate_molar_mass, perform_conversion
from chembalance.periodic import load_periodic_table

app = typer.Typer(add_completion=False)


def _load_config(config_file: Path | None) -> BalancerConfiguration:
    if config_file is None:
        return DEFAULT_CONFIGURATION
    try:
        return load_configuration(config_file)
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _emit(data: Dict[str, Any], output: Path | None) -> None:
    json_output = json.dumps(data, indent=2, ensure_ascii=False)
    typer.echo(json_output)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(json_output)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Chemical formula parser and equation balancer."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


@app.command()
def balance(
    equation: Annotated[str, typer.Argument(help="Equation such as 'H2 + O2 = H2O'.")],
    method: Annotated[
        str, typer.Option(help="Balancing method: trial-and-error or algebraic.")
    ] = constants.DEFAULT_BALANCE_METHOD,
    config_file: Annotated[
        Path | None, typer.Option("--config", help="Path to JSON configuration file.")
    ] = None,
    output: Annotated[
        Path | None, typer.Option(help="Path to save output JSON.")
    ] = None,
) -> None:
    """Balance a chemical equation."""
    if method not in constants.BALANCE_METHODS:
        raise typer.BadParameter(f"Unknown method: {method}", param_hint="--method")

    result = balance_chemical_equation(equation, method=method, config=_load_config(config_file))
    _emit(result.to_dict(), output)
    if not result.is_valid:
        raise typer.Exit(code=1)


@app.command()
def parse(
    formula: Annotated[str, typer.Argument(help="Chemical formula such as 'Ca(OH)2'.")],
    config_file: Annotated[
        Path | None, typer.Option("--config", help="Path to JSON configuration file.")
    ] = None,
) -> None:
    """Parse a formula into element counts."""
    config = _load_config(config_file)
    parsed = parse_chemical_formula(formula, limits=config.limits)
    _emit(
        {
            "formula": parsed.formula,
            "is_valid": parsed.is_valid,
            "error": parsed.error,
            "valid_syntax": validate_formula_syntax(formula),
            "elements": parsed.as_dict(),
        },
        None,
    )
    if not parsed.is_valid:
        raise typer.Exit(code=1)


@app.command()
def mass(
    formula: Annotated[str, typer.Argument(help="Chemical formula such as 'H2SO4'.")],
) -> None:
    """Compute the molar mass of a formula."""
    result = calculate_molar_mass(formula)
    _emit(
        {
            "formula": result.formula,
            "is_valid": result.is_valid,
            "error": result.error,
            "molar_mass": round(result.molar_mass, 4),
            "elements": [
                {
                    "symbol": e.symbol,
                    "name": e.name,
                    "count": e.count,
                    "atomic_mass": e.atomic_mass,
                    "contribution": round(e.contribution, 4),
                    "mass_percent": round(e.mass_percent, 2),
                }
                for e in result.elements
            ],
        },
        None,
    )
    if not result.is_valid:
        raise typer.Exit(code=1)


@app.command()
def convert(
    value: Annotated[float, typer.Argument(help="Quantity to convert.")],
    formula: Annotated[str, typer.Argument(help="Compound formula such as 'H2O'.")],
    conversion: Annotated[
        str, typer.Option("--type", help="Conversion such as grams-to-moles.")
    ] = constants.GRAMS_TO_MOLES,
    config_file: Annotated[
        Path | None, typer.Option("--config", help="Path to JSON configuration file.")
    ] = None,
) -> None:
    """Convert between grams, moles and molecules of a compound."""
    if conversion not in constants.CONVERSION_TYPES:
        raise typer.BadParameter(f"Unknown conversion: {conversion}", param_hint="--type")

    config = _load_config(config_file)
    result = perform_conversion(value, conversion, formula, limits=config.calculators)
    _emit(result.to_dict(), None)
    if not result.is_valid:
        raise typer.Exit(code=1)


@app.command()
def elements() -> None:
    """List the supported element symbols."""
    _emit({"symbols": load_periodic_table().symbols()}, None)
