import argparse
import json
import logging
import sys
from typing import Any, Sequence

import uvicorn
from rich.console import Console
from rich.table import Table

from taxplan.api.error_map import explain_error
from taxplan.config import get_settings
from taxplan.core.calc import calculate_capital_gains_tax, calculate_roth_conversion_tax
from taxplan.core.errors import TaxInputError
from taxplan.core.models import FILING_STATUS_LABELS, FilingStatus, TaxImpact
from taxplan.core.optimize import StrategyResult, parse_parameters, plan_strategy

EXIT_INPUT_ERROR = 2

_IMPACT_ROWS = (
    ("Federal tax", "federal_tax"),
    ("State tax", "state_tax"),
    ("Total tax", "total_tax"),
    ("Effective rate", "effective_rate"),
    ("Marginal rate", "marginal_rate"),
)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def _format_value(field: str, value: Any) -> str:
    if field.endswith("_rate"):
        return f"{value * 100:.4f}%"
    return f"${value:,.2f}"


def _impact_table(title: str, impact: TaxImpact) -> Table:
    table = Table(title=title)
    table.add_column("Item")
    table.add_column("Amount", justify="right")
    table.add_row("Taxable amount", _format_value("taxable_amount", impact.taxable_amount))
    for label, field in _IMPACT_ROWS:
        table.add_row(label, _format_value(field, getattr(impact, field)))
    return table


def _print_strategy(console: Console, result: StrategyResult) -> None:
    roth = result.roth_conversion
    gains = result.capital_gains
    console.print(_impact_table(f"Roth conversion of ${roth.amount:,.2f}", roth.impact))
    console.print(
        f"Future value in {roth.time_horizon} years: ${roth.future_value:,.2f} "
        f"(NPV ${roth.npv:,.2f})"
    )
    console.print(_impact_table(f"Realize ${gains.amount:,.2f} of gains", gains.impact))
    console.print(f"Potential savings vs realizing all gains: ${gains.potential_savings:,.2f}")
    console.print(f"Combined tax: ${result.combined_tax:,.2f}")
    console.print(f"Risk-adjusted score: ${result.risk_adjusted_score:,.2f}")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="taxplan",
        description="Estimate the tax cost of a Roth conversion or capital-gains harvest.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level for the taxplan logger (default: WARNING).",
    )
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON.")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output.")
    sub = parser.add_subparsers(dest="command", required=True)

    statuses = [status.value for status in FilingStatus]
    for name, help_text in (
        ("roth", "Tax on converting AMOUNT from a traditional IRA to a Roth IRA."),
        ("gains", "Tax on realizing AMOUNT of long-term capital gains."),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("amount", help="Dollar amount, e.g. 50000 or 50000.00.")
        cmd.add_argument("--status", default=FilingStatus.SINGLE.value, help=f"Filing status: {', '.join(statuses)}.")
        cmd.add_argument("--state", required=True, help="Two-letter state code.")

    plan = sub.add_parser("strategy", help="Recommend a conversion and a gains realization amount.")
    plan.add_argument("--traditional", required=True, help="Traditional IRA balance.")
    plan.add_argument("--roth", default="0", help="Roth IRA balance.")
    plan.add_argument("--gains", default="0", help="Unrealized long-term gains available.")
    plan.add_argument("--status", default=FilingStatus.SINGLE.value, help=f"Filing status: {', '.join(statuses)}.")
    plan.add_argument("--state", required=True, help="Two-letter state code.")
    plan.add_argument("--years", type=int, default=20, help="Projection horizon in years (1-40).")
    plan.add_argument("--discount-rate", default="0.07", help="Annual discount rate for NPV.")
    plan.add_argument("--risk-tolerance", type=int, default=3, help="1 (cautious) to 5 (aggressive).")
    plan.add_argument("--state-tax-weight", default="1", help="Share of state tax counted when ranking options (0-1).")

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


def _run(args: argparse.Namespace, console: Console) -> int:
    if args.command == "serve":
        uvicorn.run("taxplan.api.http:app", host=args.host, port=args.port, log_level=args.log_level.lower())
        return 0
    settings = get_settings()
    policy = settings.state_policy()
    if args.command in {"roth", "gains"}:
        calculate = calculate_roth_conversion_tax if args.command == "roth" else calculate_capital_gains_tax
        impact = calculate(args.amount, args.status, args.state, policy=policy, maximum=settings.max_amount)
        if args.json:
            console.print_json(json.dumps(impact.as_dict()))
            return 0
        status = FilingStatus.parse(args.status)
        title = "Roth conversion" if args.command == "roth" else "Capital gains"
        console.print(_impact_table(f"{title} ({FILING_STATUS_LABELS[status]}, {args.state.upper()})", impact))
        return 0

    params = parse_parameters(
        {
            "traditional_ira_balance": args.traditional,
            "roth_ira_balance": args.roth,
            "capital_gains": args.gains,
            "tax_state": args.state,
            "filing_status": args.status,
            "time_horizon": args.years,
            "discount_rate": args.discount_rate,
            "risk_tolerance": args.risk_tolerance,
            "state_tax_weight": args.state_tax_weight,
        }
    )
    result = plan_strategy(params, policy=policy, maximum=settings.max_amount)
    if args.json:
        console.print_json(json.dumps(result.as_dict()))
    else:
        _print_strategy(console, result)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.log_level)
    console = Console(no_color=args.no_color, highlight=False)
    try:
        return _run(args, console)
    except TaxInputError as exc:
        details = explain_error(exc)
        logging.getLogger("taxplan").info("Input rejected: kind=%s field=%s", exc.kind.value, exc.field)
        print(f"error: {details['message']} {details['remediation']}", file=sys.stderr)
        return EXIT_INPUT_ERROR


if __name__ == "__main__":
    sys.exit(main())
