from __future__ import annotations

import csv
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import List

from shopsim.models import DailySummary

LEDGER_COLUMNS = [f.name for f in fields(DailySummary)]


def project_root() -> Path:
    # .../src/shopsim/storage.py -> parents[2] == project root
    return Path(__file__).resolve().parents[2]


def data_dir() -> Path:
    override = os.environ.get("SHOPSIM_DATA_DIR", "").strip()
    p = Path(override) if override else project_root() / "data"
    p.mkdir(parents=True, exist_ok=True)
    return p


def ledger_path() -> Path:
    return data_dir() / "ledger.csv"


def reset_data_files() -> None:
    """Delete the exported ledger."""

    ledger_path().unlink(missing_ok=True)


def append_ledger_csv(summary: DailySummary) -> None:
    p = ledger_path()

    # An older header is rewritten in place, new columns left blank.
    if p.exists() and p.stat().st_size > 0:
        with p.open("r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            existing = list(reader.fieldnames or [])
            rows = list(reader)
        if existing != LEDGER_COLUMNS:
            with p.open("w", encoding="utf-8", newline="") as f:
                w2 = csv.DictWriter(f, fieldnames=LEDGER_COLUMNS)
                w2.writeheader()
                for r in rows:
                    w2.writerow({c: r.get(c, "") for c in LEDGER_COLUMNS})

    write_header = (not p.exists()) or (p.stat().st_size <= 0)
    with p.open("a", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=LEDGER_COLUMNS)
        if write_header:
            w.writeheader()
        w.writerow(asdict(summary))


def read_ledger_rows() -> List[dict]:
    p = ledger_path()
    if not p.exists():
        return []
    with p.open("r", encoding="utf-8", newline="") as f:
        return list(csv.DictReader(f))
