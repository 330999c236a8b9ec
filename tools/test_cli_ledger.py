from __future__ import annotations

import csv
import io
import os
import tempfile
from contextlib import redirect_stdout
from unittest import mock

from shopsim.cli import main as cli_main
from shopsim.models import DailySummary, StoreState
from shopsim.reporting import bankruptcy_warning, format_money, format_percentage, summary_lines
import shopsim.storage as storage


def _assert(cond: bool, msg: str) -> None:
    if not cond:
        raise AssertionError(msg)


def _use_temp_data_dir() -> str:
    d = tempfile.mkdtemp(prefix="shopsim-test-")
    os.environ["SHOPSIM_DATA_DIR"] = d
    return d


def test_ledger_append_and_read() -> None:
    _use_temp_data_dir()
    storage.append_ledger_csv(DailySummary(day=1, revenue=150.0, net=120.0, visits=170))
    storage.append_ledger_csv(DailySummary(day=2, revenue=90.0, net=60.0, event_id="visit_spike"))

    rows = storage.read_ledger_rows()
    _assert([r["day"] for r in rows] == ["1", "2"], f"unexpected rows {rows}")
    _assert(float(rows[0]["revenue"]) == 150.0 and rows[1]["event_id"] == "visit_spike", "values round-trip")
    _assert(list(rows[0].keys()) == storage.LEDGER_COLUMNS, "header follows the summary fields")

    storage.reset_data_files()
    _assert(storage.read_ledger_rows() == [], "reset removes the ledger")
    storage.reset_data_files()


def test_ledger_header_migration() -> None:
    _use_temp_data_dir()
    p = storage.ledger_path()
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["day", "revenue"])
        w.writerow(["1", "10.0"])

    storage.append_ledger_csv(DailySummary(day=2, revenue=20.0))
    rows = storage.read_ledger_rows()
    _assert(len(rows) == 2, "old rows kept")
    _assert(rows[0]["revenue"] == "10.0" and rows[0]["visits"] == "", "old row padded with blanks")
    _assert(rows[1]["day"] == "2", "new row appended")


def test_formatting() -> None:
    _assert(format_money(1234.5) == "$1,234.50", format_money(1234.5))
    _assert(format_money(-30) == "$-30.00", format_money(-30))
    _assert(format_percentage(6.0) == "6.0%", format_percentage(6.0))


def test_bankruptcy_warning_levels() -> None:
    st = StoreState()
    _assert(bankruptcy_warning(st) == "", "no warning with positive streak 0")
    st.consecutive_negative_days = 1
    _assert(bankruptcy_warning(st).startswith("WARNING") and "(1/3" in bankruptcy_warning(st), "first red day")
    st.consecutive_negative_days = 2
    _assert(bankruptcy_warning(st).startswith("CRITICAL"), "second red day")


def test_summary_lines() -> None:
    s = DailySummary(day=3, revenue=150.0, costs=30.0, net=120.0, visits=170, conversion_rate=0.06,
                     processed_orders=10, capacity=20, lost_orders=4, overflow_created=2, stock_received=50)
    text = "\n".join(summary_lines(s))
    _assert("Day 3" in text and "$150.00" in text and "6.0%" in text, text)
    _assert("Stock received: 50" in text and "4 orders lost" in text and "2 orders carried" in text, text)


def test_cli_plays_a_day_and_quits() -> None:
    _use_temp_data_dir()
    out = io.StringIO()
    with mock.patch("builtins.input", side_effect=["3", "20", "cheap", "1", "0"]), redirect_stdout(out):
        rc = cli_main(["--seed", "5", "--challenge", "survivor", "--log-level", "ERROR"])
    text = out.getvalue()
    _assert(rc == 0, f"expected exit 0, got {rc}")
    _assert("Ordered 20 units from the cheap supplier" in text, text)
    _assert("=== Day 1 (closing) ===" in text, "day summary printed")
    _assert("Challenge: Survivor" in text, "challenge progress shown")
    rows = storage.read_ledger_rows()
    _assert(len(rows) == 1 and rows[0]["day"] == "1", "CLI exports the ledger")


def test_cli_shows_ledger() -> None:
    _use_temp_data_dir()
    out = io.StringIO()
    with mock.patch("builtins.input", side_effect=["11", "1", "11", "0"]), redirect_stdout(out):
        rc = cli_main(["--seed", "3", "--challenge", "none", "--log-level", "ERROR"])
    text = out.getvalue()
    _assert(rc == 0, f"expected exit 0, got {rc}")
    _assert("Ledger is empty" in text, "empty ledger reported before the first day")
    _assert("Last 1 days from the ledger:" in text, text)
    _assert("Day   1  revenue $" in text, "ledger row rendered")


def test_cli_stops_on_eof() -> None:
    _use_temp_data_dir()
    out = io.StringIO()
    with mock.patch("builtins.input", side_effect=EOFError), redirect_stdout(out):
        rc = cli_main(["--seed", "1", "--challenge", "none", "--no-ledger", "--log-level", "ERROR"])
    _assert(rc == 0 and "Bye." in out.getvalue(), "EOF exits cleanly")
    _assert(storage.read_ledger_rows() == [], "no ledger written")


def main() -> None:
    tests = [
        test_ledger_append_and_read,
        test_ledger_header_migration,
        test_formatting,
        test_bankruptcy_warning_levels,
        test_summary_lines,
        test_cli_plays_a_day_and_quits,
        test_cli_shows_ledger,
        test_cli_stops_on_eof,
    ]
    for t in tests:
        t()
        print(f"OK  {t.__name__}")
    print(f"ALL OK ({len(tests)} tests)")


if __name__ == "__main__":
    main()
