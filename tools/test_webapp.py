from __future__ import annotations

import csv
import io
import os
import tempfile
import time

from fastapi.testclient import TestClient

from shopsim.webapp import create_app


def _assert(cond: bool, msg: str) -> None:
    if not cond:
        raise AssertionError(msg)


def _client() -> TestClient:
    os.environ["SHOPSIM_DATA_DIR"] = tempfile.mkdtemp(prefix="shopsim-web-")
    os.environ["SHOPSIM_SEED"] = "7"
    c = TestClient(create_app())
    c.post("/api/reset", json={"seed": 7})
    return c


def test_state_shape() -> None:
    c = _client()
    s = c.get("/api/state").json()
    _assert(s["day"] == 1 and s["cash"] == 500.0 and s["stock"] == 50 and s["price"] == 15, f"bad start {s}")
    _assert(s["reputation"]["tier"] == "Good", "starts with Good reputation")
    _assert(s["capacity"]["capacity"] == 20, "base capacity 20")
    _assert(s["supplier"] == "fast", "fast supplier by default")
    _assert(s["last_summary"] is None, "no summary before the first day")


def test_simulate_and_summaries() -> None:
    c = _client()
    s = c.post("/api/simulate", json={"days": 3}).json()
    _assert(s["day"] == 4, f"expected day 4, got {s['day']}")
    _assert(s["last_summary"]["day"] == 3, "last summary is day 3")

    rows = c.get("/api/summaries", params={"limit": 2}).json()["summaries"]
    _assert([r["day"] for r in rows] == [2, 3], f"unexpected summaries {rows}")

    r = c.get("/download/ledger")
    _assert(r.status_code == 200, f"ledger download failed: {r.status_code}")
    _assert(r.headers["content-type"].startswith("text/csv"), r.headers["content-type"])
    ledger = list(csv.DictReader(io.StringIO(r.text)))
    _assert([int(x["day"]) for x in ledger] == [1, 2, 3], "one ledger row per day")


def test_reset_clears_ledger_and_validates_challenge() -> None:
    c = _client()
    c.post("/api/simulate", json={"days": 2})
    s = c.post("/api/reset", json={"challenge": "survivor"}).json()
    _assert(s["day"] == 1 and s["challenge"]["id"] == "survivor", f"reset failed {s}")
    _assert("error" in c.get("/download/ledger").json(), "ledger should be gone after reset")

    bad = c.post("/api/reset", json={"challenge": "speedrun"}).json()
    _assert("error" in bad, "unknown challenge should be rejected")


def test_stock_action() -> None:
    c = _client()
    out = c.post("/api/actions/stock", json={"amount": 40, "supplier": "cheap"}).json()
    _assert(out["result"]["success"], out["result"]["message"])
    _assert(out["state"]["cash"] == 400.0 and out["state"]["incoming_total"] == 40, "order queued and paid")
    _assert(out["state"]["incoming_stock"][0]["arrival_day"] == 3, "cheap lead time is two days")

    _assert("error" in c.post("/api/actions/stock", json={"supplier": "slow"}).json(), "bad supplier")
    _assert("error" in c.post("/api/actions/stock", json={"amount": -5}).json(), "bad amount")


def test_price_loan_supplier_actions() -> None:
    c = _client()
    out = c.post("/api/actions/price", json={"delta": -20}).json()
    _assert(not out["result"]["success"] and out["state"]["price"] == 15, "price floor")
    out = c.post("/api/actions/price", json={"delta": 5}).json()
    _assert(out["result"]["success"] and out["state"]["price"] == 20, "price raised")

    out = c.post("/api/actions/loan", json={"amount": 100}).json()
    _assert(out["state"]["debt"] == 100.0 and out["state"]["cash"] == 600.0, "loan applied")
    _assert("error" in c.post("/api/actions/loan", json={"amount": 0}).json(), "zero loan rejected")

    out = c.post("/api/actions/supplier", json={"supplier": "cheap"}).json()
    _assert(out["state"]["supplier"] == "cheap", "supplier switched")
    _assert("error" in c.post("/api/actions/supplier", json={"supplier": "x"}).json(), "bad supplier")


def test_capacity_and_marketing_actions() -> None:
    c = _client()
    out = c.post("/api/actions/employee", json={"hire": True}).json()
    _assert(out["result"]["success"] and out["state"]["capacity"]["employee_hired"], "hired")
    out = c.post("/api/actions/employee", json={"hire": False}).json()
    _assert(out["result"]["success"] and not out["state"]["capacity"]["employee_hired"], "fired")

    out = c.post("/api/actions/campaign").json()
    _assert(out["result"]["success"] and out["state"]["marketing"]["campaign_active"], "campaign started")
    _assert(out["state"]["cash"] == 300.0, "campaign charged")

    out = c.post("/api/actions/expansion").json()
    _assert(not out["result"]["success"], "300 cannot buy a 500 expansion")

    out = c.post("/api/actions/stockbot").json()
    _assert(out["result"]["success"] and out["state"]["software"] == ["stockbot"], "StockBot installed")


def test_simulate_reports_game_over() -> None:
    c = _client()
    # Drain cash so the store runs three days in the red.
    for _ in range(5):
        c.post("/api/actions/stock", json={"amount": 1})
    c.post("/api/actions/price", json={"delta": 200})
    s = c.post("/api/simulate", json={"days": 10}).json()
    _assert(s["game_over"], f"expected bankruptcy, got day {s['day']} cash {s['cash']}")
    _assert(s["day"] == 4, "stops right after the third red day")
    out = c.post("/api/simulate", json={"days": 1}).json()
    _assert(out.get("code") == "game_over", "no more days once bankrupt")
    out = c.post("/api/clock/start", json={"day_seconds": 0.05}).json()
    _assert(out.get("code") == "game_over", "the clock does not start once bankrupt")


# Real-time clock


def _wait_for_day(c: TestClient, day: int, timeout: float = 3.0) -> dict:
    deadline = time.monotonic() + timeout
    s = c.get("/api/state").json()
    while s["day"] < day and time.monotonic() < deadline:
        time.sleep(0.02)
        s = c.get("/api/state").json()
    return s


def test_clock_advances_days_and_writes_ledger() -> None:
    c = _client()
    _assert(not c.get("/api/clock").json()["running"], "clock is idle before start")
    s = c.post("/api/clock/start", json={"day_seconds": 0.05}).json()
    _assert(s["clock"]["running"] and s["clock"]["day_seconds"] == 0.05, f"clock did not start {s['clock']}")
    try:
        s = _wait_for_day(c, 3)
        _assert(s["day"] >= 3, f"clock should have advanced two days, still on day {s['day']}")
    finally:
        c.post("/api/clock/stop")
    _assert(not c.get("/api/clock").json()["running"], "clock stopped")

    rows = c.get("/api/summaries", params={"limit": 100}).json()["summaries"]
    ledger = list(csv.DictReader(io.StringIO(c.get("/download/ledger").text)))
    _assert(len(ledger) == len(rows) >= 2, f"each clock day lands in the ledger, {len(ledger)} vs {len(rows)}")


def test_clock_pause_and_resume() -> None:
    c = _client()
    c.post("/api/clock/start", json={"day_seconds": 0.05})
    try:
        out = c.post("/api/clock/pause").json()
        _assert(out["result"]["success"] and out["state"]["paused"], "paused")
        # a day already in flight may still finish
        time.sleep(0.15)
        held = c.get("/api/state").json()["day"]
        time.sleep(0.3)
        _assert(c.get("/api/state").json()["day"] == held, "no days pass while paused")

        out = c.post("/api/clock/resume").json()
        _assert(out["result"]["success"] and not out["state"]["paused"], "resumed")
        s = _wait_for_day(c, held + 1)
        _assert(s["day"] > held, "days pass again after resume")
    finally:
        c.post("/api/clock/stop")


def test_clock_rejects_bad_day_length() -> None:
    c = _client()
    _assert("error" in c.post("/api/clock/start", json={"day_seconds": 0}).json(), "zero-length day")
    _assert("error" in c.post("/api/clock/start", json={"day_seconds": -1}).json(), "negative day")
    _assert(not c.get("/api/clock").json()["running"], "nothing started")


def test_reset_stops_clock_and_orders_reach_new_session() -> None:
    c = _client()
    c.post("/api/clock/start", json={"day_seconds": 0.05})
    _wait_for_day(c, 2)
    s = c.post("/api/reset", json={"seed": 7}).json()
    _assert(s["day"] == 1 and not s["clock"]["running"], "reset stops the clock")

    out = c.post("/api/actions/stock", json={"amount": 20}).json()
    _assert(out["result"]["success"], out["result"]["message"])
    _assert(out["state"]["cash"] == 400.0 and out["state"]["incoming_total"] == 20, "order paid by the fresh store")
    time.sleep(0.15)
    _assert(c.get("/api/state").json()["day"] == 1, "old clock no longer drives days")


def main() -> None:
    tests = [
        test_state_shape,
        test_simulate_and_summaries,
        test_reset_clears_ledger_and_validates_challenge,
        test_stock_action,
        test_price_loan_supplier_actions,
        test_capacity_and_marketing_actions,
        test_simulate_reports_game_over,
        test_clock_advances_days_and_writes_ledger,
        test_clock_pause_and_resume,
        test_clock_rejects_bad_day_length,
        test_reset_stops_clock_and_orders_reach_new_session,
    ]
    for t in tests:
        t()
        print(f"OK  {t.__name__}")
    print(f"ALL OK ({len(tests)} tests)")


if __name__ == "__main__":
    main()
