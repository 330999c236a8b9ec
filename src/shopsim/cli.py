from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from shopsim.challenges import CHALLENGES, ChallengeType
from shopsim.config import load_economy_config
from shopsim.engine import Session
from shopsim.models import ActionResult, Supplier
from shopsim.reporting import format_money, print_day_summary, print_status
from shopsim.storage import append_ledger_csv, read_ledger_rows
from shopsim.telemetry import setup_logging


def _input_int(prompt: str, default: Optional[int] = None) -> Optional[int]:
    s = input(prompt).strip()
    if not s:
        return default
    try:
        return int(s)
    except ValueError:
        print("Invalid input: enter a whole number.")
        return None


def _input_float(prompt: str, default: Optional[float] = None) -> Optional[float]:
    s = input(prompt).strip()
    if not s:
        return default
    try:
        return float(s)
    except ValueError:
        print("Invalid input: enter a number.")
        return None


def _show(result: ActionResult) -> None:
    print(("OK  " if result.success else "--  ") + result.message)


def _advance(session: Session, days: int, export_ledger: bool) -> None:
    for summary in session.run_days(days):
        print_day_summary(summary)
        if export_ledger:
            try:
                append_ledger_csv(summary)
            except OSError as e:
                print(f"Ledger export failed: {e}")


def _cmd_order_stock(session: Session) -> None:
    cfg = session.cfg
    amount = _input_int(f"Units ({cfg.stock_order_amount} for {format_money(cfg.stock_order_cost)}): ", cfg.stock_order_amount)
    if amount is None:
        return
    if amount <= 0:
        print("Amount must be positive.")
        return
    sup = input(f"Supplier fast/cheap (current {session.supplier.value}): ").strip() or session.supplier.value
    try:
        supplier = Supplier.parse(sup)
    except ValueError as e:
        print(e)
        return
    _show(session.actions.order_stock(amount, supplier))


def _cmd_adjust_price(session: Session) -> None:
    delta = _input_int(f"Price change (current {format_money(session.state.price)}): ", 0)
    if delta:
        _show(session.actions.adjust_price(delta))


def _cmd_set_supplier(session: Session) -> None:
    try:
        supplier = Supplier.parse(input("Supplier fast/cheap: "))
    except ValueError as e:
        print(e)
        return
    _show(session.actions.set_supplier(supplier))


def _cmd_take_loan(session: Session) -> None:
    amount = _input_float("Loan amount (100/250/500): ", 100.0)
    if amount is None:
        return
    if amount <= 0:
        print("Amount must be positive.")
        return
    _show(session.actions.take_loan(amount))


def _cmd_employee(session: Session) -> None:
    if session.capacity.data.employee_hired:
        _show(session.actions.fire_employee())
    else:
        _show(session.actions.hire_employee())


def _cmd_show_ledger(limit: int = 7) -> None:
    rows = read_ledger_rows()[-limit:]
    if not rows:
        print("Ledger is empty (advance a day first, without --no-ledger).")
        return
    print(f"Last {len(rows)} days from the ledger:")
    for r in rows:
        revenue = float(r.get("revenue") or 0.0)
        net = float(r.get("net") or 0.0)
        print(f"  Day {r.get('day', '?'):>3}  revenue {format_money(revenue)}  net {format_money(net)}  orders {r.get('processed_orders') or 0}")


def _pick_challenge() -> ChallengeType:
    print("Challenges:")
    for c in CHALLENGES.values():
        print(f"- {c.challenge_id.value}: {c.name} ({c.description})")
    raw = input("Challenge [none]: ").strip() or "none"
    try:
        return ChallengeType.parse(raw)
    except ValueError:
        print("Unknown challenge, playing free.")
        return ChallengeType.NONE


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="shopsim", description="Online store tycoon (terminal)")
    p.add_argument("--config", type=Path, default=None, help="JSON file with economy overrides")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--challenge", default=None, help="none|first_profit|survivor|reputation_master|growth_hacker")
    p.add_argument("--log-level", default="WARNING")
    p.add_argument("--log-format", default="console", choices=["console", "json"])
    p.add_argument("--no-ledger", action="store_true", help="do not export data/ledger.csv")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_format)
    cfg = load_economy_config(args.config)

    print("Online store tycoon (CLI)")
    print("Manage price, stock, suppliers, capacity and marketing. Three days in the red and you are out.\n")

    challenge = ChallengeType.parse(args.challenge) if args.challenge else _pick_challenge()
    session = Session(cfg=cfg, seed=args.seed, challenge=challenge)
    export_ledger = not args.no_ledger

    while True:
        print_status(session)
        if session.game_over:
            st = session.state
            print("BANKRUPTCY")
            print(f"Days survived: {st.current_day - 1}  Final cash: {format_money(st.cash)}")
            return 0
        if session.challenges.won:
            print(f"Challenge complete: {session.challenges.info.name}!")

        print("1) Next day")
        print("2) Advance several days")
        print("3) Order stock")
        print("4) Adjust price")
        print("5) Choose supplier")
        print("6) Take a loan")
        print("7) Hire/fire operator")
        print("8) Buy warehouse expansion")
        print("9) Start marketing campaign")
        print("10) Install StockBot")
        print("11) Show ledger")
        print("0) Quit")

        try:
            choice = input("Choice: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye.")
            return 0

        if choice == "1":
            _advance(session, 1, export_ledger)
        elif choice == "2":
            n = _input_int("Days: ", 7)
            if n:
                _advance(session, max(1, min(365, n)), export_ledger)
        elif choice == "3":
            _cmd_order_stock(session)
        elif choice == "4":
            _cmd_adjust_price(session)
        elif choice == "5":
            _cmd_set_supplier(session)
        elif choice == "6":
            _cmd_take_loan(session)
        elif choice == "7":
            _cmd_employee(session)
        elif choice == "8":
            _show(session.actions.purchase_expansion())
        elif choice == "9":
            _show(session.actions.start_campaign())
        elif choice == "10":
            _show(session.actions.install_stockbot())
        elif choice == "11":
            _cmd_show_ledger()
        elif choice == "0":
            print("Bye.")
            return 0
        else:
            print("Invalid option: enter 0-11.")
