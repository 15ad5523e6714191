"""folio CLI entrypoint.

Usage:
  folio add <portfolio> [ticker] [--min X] [--max X] [--per X]
  folio entry <portfolio> <ticker> <quantity> [price] [date]
  folio show <portfolio>
  folio list
  folio search <query>
  folio info <ticker>

Options (before the subcommand):
  --config FILE         TOML config file
  --set KEY=VALUE       Override a config entry, dotted path (may be repeated)
  --verbose             DEBUG logging

Exit codes: 0 success, 1 recoverable error (nothing changed), 2 startup failure
(configuration or ledger file unusable).
"""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from pathlib import Path
from typing import Callable, Optional, TextIO

from folio.adapters.file_store import FileLedgerStore
from folio.adapters.telemetry.jsonl import JsonlTelemetry
from folio.adapters.yahoo import YahooQuoteProvider
from folio.config.config_loader import ConfigLoader
from folio.config.configs import FolioConfig
from folio.core.clock import SystemClock
from folio.core.ledger import Ledger
from folio.core.valuation import day_gain, portfolio_gain
from folio.errors.errors import (
    ConfigurationError,
    EmptyPortfolioError,
    FolioError,
    PersistenceError,
    ValidationError,
)
from folio.ports.clock import Clock
from folio.ports.quote_provider import QuoteProvider
from folio.ports.telemetry import Telemetry
from folio.types.types import PortfolioValuation

APP_VERSION = "0.1.0"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_STARTUP = 2

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[FolioConfig], QuoteProvider]


def build_parser() -> argparse.ArgumentParser:
    """
    Return the top-level CLI argument parser.
    """
    p = argparse.ArgumentParser(prog="folio", description="Track portfolio gain/loss")
    p.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    p.add_argument("--config", type=Path, help="Path to a TOML config file")
    p.add_argument(
        "--set",
        dest="config_overrides",
        action="append",  # builds a Python list (config_overrides) containing each key=value
        default=[],
        metavar="KEY=VALUE",
        help="Override a config entry (may be repeated)",
    )
    p.add_argument("--verbose", action="store_true", help="Enable DEBUG logging")
    sub = p.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Create a portfolio or set an asset's cost constraint")
    add.add_argument("portfolio")
    add.add_argument("ticker", nargs="?")
    add.add_argument("--min", dest="cost_min", help="Minimum price alert")
    add.add_argument("--max", dest="cost_max", help="Maximum price alert")
    add.add_argument("--per", dest="cost_per", help="Target percentage")

    entry = sub.add_parser("entry", help="Record a purchase")
    entry.add_argument("portfolio")
    entry.add_argument("ticker")
    entry.add_argument("quantity")
    entry.add_argument("price", nargs="?", help="Unit price; defaults to the current quote")
    entry.add_argument("date", nargs="?", help="Purchase date (default format dd/mm/yyyy)")

    show = sub.add_parser("show", help="Gain/loss of every asset in a portfolio")
    show.add_argument("portfolio")

    sub.add_parser("list", help="Total gain/loss of every portfolio")

    search = sub.add_parser("search", help="Search instruments")
    search.add_argument("query")

    info = sub.add_parser("info", help="Last quote of a ticker")
    info.add_argument("ticker")
    return p


def configure_logging(cfg: FolioConfig, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, cfg.logging.level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_telemetry(cfg: FolioConfig, clock: Clock) -> Optional[Telemetry]:
    if not cfg.audit.enabled:
        return None
    return JsonlTelemetry(
        session_id=str(uuid.uuid4()),
        sink_path=Path(cfg.store.data_dir).expanduser() / cfg.audit.file_name,
        clock=clock,
    )


def _default_provider(cfg: FolioConfig) -> QuoteProvider:
    return YahooQuoteProvider(cfg.quote)


# --- Rendering ---


def _signed(value: float, suffix: str = "") -> str:
    return f"{value:+.2f}{suffix}"


def format_valuation(valuation: PortfolioValuation) -> str:
    header = f"{'ticker':<12}{'qty':>8}{'price':>12}{'invested':>14}{'gain':>14}{'gain (%)':>10}"
    lines = [header, "-" * len(header)]
    for a in valuation.assets:
        lines.append(
            f"{a.ticker:<12}{a.quantity:>8}{a.quote.close:>12.2f}{a.invested:>14.2f}"
            f"{_signed(a.gain):>14}{_signed(a.percentage, '%'):>10}"
        )
    lines.append("-" * len(header))
    lines.append(
        f"{'total':<32}{valuation.invested:>14.2f}"
        f"{_signed(valuation.gain):>14}{_signed(valuation.percentage, '%'):>10}"
    )
    return "\n".join(lines)


# --- Commands ---


def _cmd_add(ledger: Ledger, args: argparse.Namespace, out: TextIO) -> int:
    if args.ticker is None:
        bounds = {"min": args.cost_min, "max": args.cost_max, "per": args.cost_per}
        given = sorted(k for k, v in bounds.items() if v is not None)
        if given:
            raise ValidationError(
                f"--{', --'.join(given)} require a ticker",
                field="ticker",
                component="cli",
            )
        created = ledger.create_portfolio(args.portfolio)
        state = "created" if created else "already exists"
        print(f"Portfolio {args.portfolio!r} {state}", file=out)
        return EXIT_OK

    record = ledger.set_cost_constraint(
        args.portfolio, args.ticker, min=args.cost_min, max=args.cost_max, per=args.cost_per
    )
    cost = record.cost
    print(
        f"{args.portfolio}/{args.ticker}: min={cost.min} max={cost.max} per={cost.per}",
        file=out,
    )
    return EXIT_OK


def _cmd_entry(ledger: Ledger, args: argparse.Namespace, out: TextIO) -> int:
    t = ledger.record_transaction(
        args.portfolio, args.ticker, args.quantity, price=args.price, date=args.date
    )
    print(
        f"{args.portfolio}/{args.ticker}: {t.quantity} @ {t.price:.2f} on "
        f"{t.date.strftime(ledger.date_format)}",
        file=out,
    )
    return EXIT_OK


def _cmd_show(ledger: Ledger, provider: QuoteProvider, args: argparse.Namespace, out: TextIO) -> int:
    portfolio = ledger.portfolio(args.portfolio)
    try:
        valuation = portfolio_gain(portfolio, provider, name=args.portfolio)
    except EmptyPortfolioError:
        print(f"Portfolio {args.portfolio!r} is empty", file=out)
        return EXIT_OK
    print(format_valuation(valuation), file=out)
    return EXIT_OK


def _cmd_list(ledger: Ledger, provider: QuoteProvider, out: TextIO) -> int:
    names = ledger.portfolio_names()
    if not names:
        print("No portfolios", file=out)
        return EXIT_OK
    # value everything before printing so a provider failure leaves stdout empty
    rows: list[str] = []
    for name in names:
        try:
            v = portfolio_gain(ledger.portfolio(name), provider, name=name)
        except EmptyPortfolioError:
            rows.append(f"{name:<20}{'empty':>14}{'':>16}")
            continue
        rows.append(f"{name:<20}{_signed(v.gain):>14}{_signed(v.percentage, '%'):>16}")

    print(f"{'portfolio':<20}{'total gain':>14}{'total gain (%)':>16}", file=out)
    for row in rows:
        print(row, file=out)
    return EXIT_OK


def _cmd_search(provider: QuoteProvider, args: argparse.Namespace, out: TextIO) -> int:
    results = provider.search(args.query)
    if not results:
        print(f"No match for {args.query!r}", file=out)
        return EXIT_OK
    for r in results:
        print(f"{r.display_type:<10}| {r.symbol} [{r.exchange}]\t| {r.description}", file=out)
    return EXIT_OK


def _cmd_info(provider: QuoteProvider, args: argparse.Namespace, out: TextIO) -> int:
    q = provider.last_quote(args.ticker)
    change, change_pct = day_gain(q)
    print(
        f"{q.instrument_type} | {q.symbol} [{q.currency}] : {q.close:.2f} "
        f"({_signed(change)} / {_signed(change_pct, '%')})",
        file=out,
    )
    return EXIT_OK


def main(
    argv: list[str] | None = None,
    *,
    provider_factory: ProviderFactory = _default_provider,
    clock: Optional[Clock] = None,
    out: Optional[TextIO] = None,
) -> int:
    """CLI entrypoint wrapper compatible with setuptools scripts."""
    args = build_parser().parse_args(argv)
    clock = clock or SystemClock()
    out = out or sys.stdout

    try:
        cfg = ConfigLoader().load_config(args.config, args.config_overrides)
    except ConfigurationError as exc:
        print(f"[!] {exc}", file=sys.stderr)
        return EXIT_STARTUP
    configure_logging(cfg, args.verbose)

    provider = provider_factory(cfg)
    try:
        return _dispatch(cfg, args, provider, clock, out)
    finally:
        provider.close()


def _dispatch(
    cfg: FolioConfig,
    args: argparse.Namespace,
    provider: QuoteProvider,
    clock: Clock,
    out: TextIO,
) -> int:
    if args.command == "search":
        return _run(lambda: _cmd_search(provider, args, out))
    if args.command == "info":
        return _run(lambda: _cmd_info(provider, args, out))

    try:
        ledger = Ledger(
            FileLedgerStore(cfg.store),
            provider,
            clock,
            telemetry=build_telemetry(cfg, clock),
            date_format=cfg.date_format,
        )
    except PersistenceError as exc:
        logger.error("ledger_unavailable", extra={"event": "ledger_unavailable"})
        print(f"[!] Cannot load ledger: {exc}", file=sys.stderr)
        return EXIT_STARTUP

    commands: dict[str, Callable[[], int]] = {
        "add": lambda: _cmd_add(ledger, args, out),
        "entry": lambda: _cmd_entry(ledger, args, out),
        "show": lambda: _cmd_show(ledger, provider, args, out),
        "list": lambda: _cmd_list(ledger, provider, out),
    }
    return _run(commands[args.command])


def _run(command: Callable[[], int]) -> int:
    try:
        return command()
    except FolioError as exc:
        print(f"[!] {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
