from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List


@dataclass
class EconomyConfig:
    # Visits
    base_visits_min: int = 120
    base_visits_max: int = 220
    visit_band_low: float = 0.2
    visit_band_high: float = 0.8
    max_visit_multiplier: float = 6.0

    # Conversion
    base_conversion_rate: float = 0.06
    reference_price: int = 15
    price_elasticity: float = 0.0015
    min_conversion_rate: float = 0.001
    max_conversion_rate: float = 0.15

    # Costs & finance
    daily_fixed_cost: float = 30.0
    daily_interest_rate: float = 0.01
    stock_order_cost: float = 100.0
    stock_order_amount: int = 50

    # Suppliers
    fast_lead_time_days: int = 1
    cheap_lead_time_days: int = 2
    fast_supplier_reputation_bonus: float = 0.02
    cheap_supplier_reputation_penalty: float = -0.01

    # Reputation
    initial_reputation_score: float = 1.0
    reputation_recovery_per_day: float = 0.005
    reputation_recovery_floor: float = 0.5
    good_tier_threshold: float = 0.7
    average_tier_threshold: float = 0.4
    lost_order_penalty: float = 0.02
    lost_order_scale_divisor: float = 10.0
    lost_order_scale_cap: float = 3.0
    marketing_penalty_multiplier: float = 2.0

    # Capacity & staffing
    base_capacity: int = 20
    capacity_per_expansion: int = 20
    expansion_costs: List[float] = field(default_factory=lambda: [500.0, 900.0])
    employee_salary: float = 30.0
    employee_capacity_bonus: int = 15

    # Marketing
    campaign_cost: float = 200.0
    campaign_duration_days: int = 4
    campaign_multiplier: float = 2.5
    campaign_low_stock_warning: int = 100
    campaign_low_cash_warning: float = 400.0
    viral_probability: float = 0.08
    viral_cooldown_days: int = 7
    viral_duration_days: int = 2
    viral_multiplier_min: float = 3.0
    viral_multiplier_max: float = 4.0

    # Random events
    event_probability: float = 0.2
    event_min_gap_days: int = 2

    # StockBot
    stockbot_price: float = 250.0
    stockbot_threshold: int = 20
    stockbot_purchase_cost: float = 100.0
    stockbot_purchase_amount: int = 50

    # Session
    initial_cash: float = 500.0
    initial_stock: int = 50
    initial_price: int = 15
    bankruptcy_days: int = 3
    day_duration_seconds: float = 20.0

    @property
    def max_expansions(self) -> int:
        return len(self.expansion_costs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _coerce(default: Any, raw: Any) -> Any:
    if isinstance(default, bool):
        return bool(raw)
    if isinstance(default, int):
        return int(raw or 0)
    if isinstance(default, float):
        return float(raw or 0.0)
    if isinstance(default, list):
        return [float(v or 0.0) for v in (raw or [])]
    return raw


def economy_config_from_dict(d: Any) -> EconomyConfig:
    cfg = EconomyConfig()
    if not isinstance(d, dict):
        return cfg
    for f in fields(cfg):
        if f.name not in d:
            continue
        setattr(cfg, f.name, _coerce(getattr(cfg, f.name), d.get(f.name)))

    # Keep the visit band and conversion clamp well ordered.
    if cfg.base_visits_max < cfg.base_visits_min:
        cfg.base_visits_min, cfg.base_visits_max = cfg.base_visits_max, cfg.base_visits_min
    if cfg.max_conversion_rate < cfg.min_conversion_rate:
        cfg.min_conversion_rate, cfg.max_conversion_rate = cfg.max_conversion_rate, cfg.min_conversion_rate
    cfg.base_capacity = max(0, int(cfg.base_capacity))
    cfg.bankruptcy_days = max(1, int(cfg.bankruptcy_days))
    return cfg


def load_economy_config(path: Path | None = None) -> EconomyConfig:
    """Read ``{"economy": {...}}`` from a JSON file; missing file means defaults."""

    if path is None or not Path(path).exists():
        return EconomyConfig()
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        return EconomyConfig()
    return economy_config_from_dict(payload.get("economy", payload))
