from __future__ import annotations

import os
import threading
from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import structlog
from fastapi import Body, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from shopsim.challenges import ChallengeType
from shopsim.config import EconomyConfig, load_economy_config
from shopsim.engine import Session
from shopsim.models import ActionResult, DailySummary, Supplier
from shopsim.notifications import Notification
from shopsim.scheduler import DayScheduler
from shopsim.storage import append_ledger_csv, data_dir, ledger_path, reset_data_files

logger = structlog.get_logger(system="shopsim.webapp")

_lock = threading.Lock()


def _env_config() -> EconomyConfig:
    p = os.environ.get("SHOPSIM_CONFIG", "").strip()
    return load_economy_config(Path(p)) if p else EconomyConfig()


def _env_seed() -> Optional[int]:
    raw = os.environ.get("SHOPSIM_SEED", "").strip()
    try:
        return int(raw) if raw else None
    except ValueError:
        return None


def _export_summary(_notification: Notification, summary: DailySummary) -> None:
    append_ledger_csv(summary)


def _new_session(seed: Optional[int], challenge: ChallengeType = ChallengeType.NONE) -> Session:
    s = Session(cfg=_env_config(), seed=seed, challenge=challenge)
    # Days resolved by /api/simulate and by the clock both land in the ledger.
    s.hub.subscribe(Notification.DAILY_SUMMARY, _export_summary)
    return s


def _clock_to_dto(clock: Optional[DayScheduler]) -> dict:
    if clock is None:
        return {"running": False, "day_seconds": None, "progress": 0.0}
    return {
        "running": bool(clock.running),
        "day_seconds": float(clock.day_seconds),
        "progress": round(clock.progress(), 1),
    }


def _state_to_dto(session: Session) -> dict:
    with session.lock:
        st = session.state
        cap = session.capacity.data
        mk = session.marketing.data
        last = session.last_summary
        return {
            "store_name": st.store_name,
            "niche": st.niche,
            "day": int(st.current_day),
            "paused": bool(st.paused),
            "cash": round(float(st.cash), 2),
            "debt": round(float(st.debt), 2),
            "stock": int(st.stock),
            "price": int(st.price),
            "total_revenue": round(float(st.total_revenue), 2),
            "consecutive_negative_days": int(st.consecutive_negative_days),
            "game_over": bool(session.game_over),
            "metrics": {
                "visits": int(st.daily_visits),
                "orders": int(st.daily_orders),
                "conversion_rate": round(float(st.conversion_rate), 3),
            },
            "reputation": {
                "tier": st.reputation.value,
                "score": round(float(session.reputation.score), 4),
            },
            "supplier": session.supplier.value,
            "incoming_stock": [asdict(e) for e in session.stock.entries],
            "incoming_total": session.stock.pending_total(),
            "capacity": {
                "capacity": session.capacity.capacity(),
                "expansions": int(cap.expansion_count),
                "next_expansion_cost": session.capacity.next_expansion_cost(),
                "employee_hired": bool(cap.employee_hired),
                "employee_worked_today": bool(cap.employee_worked_today),
                "overflow_yesterday": int(cap.overflow_yesterday),
                "overflow_today": int(cap.overflow_today),
            },
            "marketing": {
                "campaign_active": bool(mk.campaign_active),
                "campaign_days_remaining": int(mk.campaign_days_remaining),
                "viral_active": bool(mk.viral_active),
                "viral_days_remaining": int(mk.viral_days_remaining),
                "visit_multiplier": round(session.marketing.visit_multiplier(), 4),
            },
            "software": list(st.installed_software),
            "challenge": {
                "id": session.challenges.challenge.value,
                "name": session.challenges.info.name,
                "progress": round(session.challenges.progress(), 2),
                "text": session.challenges.progress_text(),
                "won": bool(session.challenges.won),
            },
            "last_summary": asdict(last) if last is not None else None,
        }


def create_app() -> FastAPI:
    holder: dict = {"session": _new_session(_env_seed()), "clock": None}

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        with _lock:
            _stop_clock()

    app = FastAPI(title="Online Store Tycoon API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    data_dir()

    def _session() -> Session:
        return holder["session"]

    def _dto() -> dict:
        out = _state_to_dto(_session())
        out["clock"] = _clock_to_dto(holder["clock"])
        return out

    def _action(result: ActionResult) -> dict:
        return {"result": result.to_dict(), "state": _dto()}

    def _stop_clock() -> None:
        clock = holder["clock"]
        if clock is not None:
            clock.stop()
            holder["clock"] = None

    @app.get("/")
    def root():
        return {
            "name": "online-store-tycoon",
            "api": "/api/state",
            "clock": "/api/clock",
            "downloads": ["/download/ledger"],
        }

    @app.get("/api/state")
    def api_state():
        with _lock:
            return _dto()

    @app.get("/api/summaries")
    def api_summaries(limit: int = 30):
        limit = max(1, min(5000, int(limit)))
        with _lock:
            s = _session()
            with s.lock:
                return {"summaries": [asdict(x) for x in s.history[-limit:]]}

    @app.post("/api/simulate")
    def api_simulate(payload: dict = Body(default={})):  # {days:int}
        days = int(payload.get("days", 1) or 1)
        days = max(1, min(3650, days))
        with _lock:
            s = _session()
            if s.game_over:
                return {"error": "game over: reset to start again", "code": "game_over", "state": _dto()}
            s.run_days(days)
            return _dto()

    @app.post("/api/reset")
    def api_reset(payload: dict = Body(default={})):  # {seed?:int, challenge?:str}
        try:
            challenge = ChallengeType.parse(payload.get("challenge") or "none")
        except ValueError as e:
            return {"error": str(e)}
        seed = payload.get("seed")
        with _lock:
            _stop_clock()
            reset_data_files()
            holder["session"] = _new_session(int(seed) if seed is not None else _env_seed(), challenge)
            logger.info("session_reset", challenge=challenge.value)
            return _dto()

    # Real-time clock

    @app.get("/api/clock")
    def api_clock():
        with _lock:
            return _clock_to_dto(holder["clock"])

    @app.post("/api/clock/start")
    def api_clock_start(payload: dict = Body(default={})):  # {day_seconds?:float}
        raw = payload.get("day_seconds")
        day_seconds = float(raw) if raw is not None else None
        if day_seconds is not None and day_seconds <= 0:
            return {"error": "day_seconds must be positive"}
        with _lock:
            s = _session()
            if s.game_over:
                return {"error": "game over: reset to start again", "code": "game_over", "state": _dto()}
            _stop_clock()
            tick = min(0.1, day_seconds / 5.0) if day_seconds is not None else 0.1
            clock = DayScheduler(s, day_seconds=day_seconds, tick_seconds=tick)
            holder["clock"] = clock
            clock.start()
            return _dto()

    @app.post("/api/clock/pause")
    def api_clock_pause():
        with _lock:
            return _action(_session().actions.set_paused(True))

    @app.post("/api/clock/resume")
    def api_clock_resume():
        with _lock:
            return _action(_session().actions.set_paused(False))

    @app.post("/api/clock/stop")
    def api_clock_stop():
        with _lock:
            _stop_clock()
            return _dto()

    # Player actions

    @app.post("/api/actions/stock")
    def api_order_stock(payload: dict = Body(default={})):  # {amount?:int, supplier?:str}
        raw_amount = payload.get("amount")
        try:
            supplier = Supplier.parse(payload["supplier"]) if payload.get("supplier") else None
        except ValueError as e:
            return {"error": str(e)}
        with _lock:
            s = _session()
            amount = int(raw_amount or s.cfg.stock_order_amount)
            if amount <= 0:
                return {"error": "amount must be positive"}
            return _action(s.actions.order_stock(amount, supplier))

    @app.post("/api/actions/price")
    def api_adjust_price(payload: dict = Body(default={})):  # {delta:int}
        delta = int(payload.get("delta") or 0)
        with _lock:
            return _action(_session().actions.adjust_price(delta))

    @app.post("/api/actions/loan")
    def api_take_loan(payload: dict = Body(default={})):  # {amount:float}
        amount = float(payload.get("amount") or 0.0)
        if amount <= 0:
            return {"error": "amount must be positive"}
        with _lock:
            return _action(_session().actions.take_loan(amount))

    @app.post("/api/actions/supplier")
    def api_set_supplier(payload: dict = Body(default={})):  # {supplier:str}
        try:
            supplier = Supplier.parse(payload.get("supplier"))
        except ValueError as e:
            return {"error": str(e)}
        with _lock:
            return _action(_session().actions.set_supplier(supplier))

    @app.post("/api/actions/employee")
    def api_employee(payload: dict = Body(default={})):  # {hire:bool}
        hire = bool(payload.get("hire", True))
        with _lock:
            s = _session()
            return _action(s.actions.hire_employee() if hire else s.actions.fire_employee())

    @app.post("/api/actions/expansion")
    def api_expansion():
        with _lock:
            return _action(_session().actions.purchase_expansion())

    @app.post("/api/actions/campaign")
    def api_campaign():
        with _lock:
            return _action(_session().actions.start_campaign())

    @app.post("/api/actions/stockbot")
    def api_stockbot():
        with _lock:
            return _action(_session().actions.install_stockbot())

    @app.get("/download/ledger")
    def download_ledger():
        p = ledger_path()
        if not p.exists():
            return {"error": "no ledger yet (simulate first)"}
        return FileResponse(str(p), media_type="text/csv", filename="ledger.csv")

    return app


app = create_app()
