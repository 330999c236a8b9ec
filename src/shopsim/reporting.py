from __future__ import annotations

from typing import List

from shopsim.engine import Session
from shopsim.models import DailySummary, StoreState


def format_money(x: float) -> str:
    return f"${x:,.2f}"


def format_percentage(x: float) -> str:
    return f"{x:.1f}%"


def bankruptcy_warning(state: StoreState, threshold: int = 3) -> str:
    n = int(state.consecutive_negative_days)
    if n <= 0 or n >= threshold:
        return ""
    level = "WARNING" if n == 1 else "CRITICAL"
    return f"{level}: negative cash! ({n}/{threshold} days to bankruptcy)"


def summary_lines(summary: DailySummary) -> List[str]:
    lines = [
        f"=== Day {summary.day} (closing) ===",
        "  ".join(
            [
                f"R: {format_money(summary.revenue)}",
                f"C: {format_money(summary.costs)}",
                f"S: {format_money(summary.employee_salary)}",
                f"I: {format_money(summary.interest)}",
                f"Net: {format_money(summary.net)}",
            ]
        ),
        f"Visits {summary.visits}  conversion {format_percentage(summary.conversion_rate * 100.0)}  "
        f"orders {summary.processed_orders}/{summary.capacity} capacity",
    ]
    if summary.stock_received:
        lines.append(f"Stock received: {summary.stock_received} units")
    lost = summary.lost_orders + summary.lost_to_capacity
    if lost > 0:
        lines.append(
            f"{lost} orders lost (stock {summary.lost_orders}, capacity {summary.lost_to_capacity}; "
            f"rep {summary.reputation_impact * 100:.1f}%)"
        )
    if summary.overflow_created:
        lines.append(f"{summary.overflow_created} orders carried to tomorrow")
    if summary.viral_started:
        lines.append("Viral! A post blew up, visits boosted for the next days")
    if summary.campaign_ended:
        lines.append("Marketing campaign ended")
    if summary.stockbot_message:
        lines.append(summary.stockbot_message)
    if summary.event_id:
        lines.append(f"Event: {summary.event_id}")
    return lines


def print_day_summary(summary: DailySummary) -> None:
    print()
    for line in summary_lines(summary):
        print(line)


def print_status(session: Session) -> None:
    st = session.state
    print("\n------------------------------")
    print(f"{st.store_name} ({st.niche}) - day {st.current_day}")
    print(f"Cash: {format_money(st.cash)}  Debt: {format_money(st.debt)}  Revenue to date: {format_money(st.total_revenue)}")
    print(
        f"Stock: {st.stock} (+{session.stock.pending_total()} incoming)  Price: {format_money(st.price)}  "
        f"Supplier: {session.supplier.value}"
    )
    print(
        f"Reputation: {st.reputation.value} ({session.reputation.score:.2f})  "
        f"Capacity: {session.capacity.capacity()}/day  Overflow: {session.capacity.total_overflow()}"
    )
    m = session.marketing.data
    if m.campaign_active:
        print(f"Campaign: {m.campaign_days_remaining} days left")
    if m.viral_active:
        print(f"Viral: {m.viral_days_remaining} days left")
    if session.challenges.challenge.value != "none":
        print(f"Challenge: {session.challenges.info.name} - {session.challenges.progress_text()}")
    warn = bankruptcy_warning(st, session.cfg.bankruptcy_days)
    if warn:
        print(warn)
    print("------------------------------\n")
