"""
Streamlit Frontend for Flat Ledger

The household dashboard: who is ahead on rent, who is behind, what the
flat is spending on power and groceries, and when the ledger starts.

DESIGN PRINCIPLES:
1. Every number on screen is recomputed from the stored records
2. Balances read the same way for every flatmate ("$x ahead", "$x behind")
3. Clear error messages when storage is unreachable
4. Settings changes are confirmed on screen and audited
"""

import asyncio
from decimal import Decimal
from typing import Optional
from uuid import UUID

import streamlit as st

from flatledger.audit import create_correlation_id
from flatledger.config import get_settings, validate_all_settings
from flatledger.ledger import describe_balance, format_currency, sort_flatmates
from flatledger.models.expense import ExpensePeriod
from flatledger.models.ledger import (
    AutopaymentStatus,
    FlatmateBalance,
    WeekPaymentStatus,
)
from flatledger.orchestrator import (
    ExpenseDashboardFlow,
    PaymentDashboardFlow,
    SettingsFlow,
    create_app_components,
)
from flatledger.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Flat Ledger",
    page_icon="🏠",
    layout="wide",
    initial_sidebar_state="expanded",
)

STATUS_LABELS = {
    WeekPaymentStatus.PAID: "✅ Paid",
    WeekPaymentStatus.PARTIAL: "🟡 Partial",
    WeekPaymentStatus.UNPAID: "❌ Unpaid",
    WeekPaymentStatus.OVERPAID: "💙 Overpaid",
}

ADVICE_LABELS = {
    AutopaymentStatus.ON_TRACK: "On Track",
    AutopaymentStatus.AHEAD: "Ahead",
    AutopaymentStatus.BEHIND: "Behind",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def money(amount: Optional[Decimal]) -> str:
    if amount is None:
        return "-"
    return format_currency(amount, get_settings().ledger.currency)


def main():
    """Main application entry point."""
    payment_flow, expense_flow, settings_flow, _ = get_components()

    st.sidebar.title("🏠 Flat Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["💸 Payments", "🧾 Expenses", "⚙️ Settings"],
        index=0,
    )

    if page == "💸 Payments":
        render_payments_page(payment_flow)
    elif page == "🧾 Expenses":
        render_expenses_page(expense_flow)
    elif page == "⚙️ Settings":
        render_settings_page(settings_flow)


def render_flatmate_card(payment_flow: PaymentDashboardFlow, balance: FlatmateBalance):
    """One flatmate's balance, rate and autopayment advice."""
    st.markdown(f"#### {balance.display_name}")
    st.markdown(f"**{describe_balance(balance.balance, get_settings().ledger.currency)}**")

    col1, col2, col3 = st.columns(3)
    col1.metric(
        "Weekly rate",
        f"{money(balance.current_weekly_rate)}/week" if balance.current_weekly_rate else "No schedule",
    )
    col2.metric("Total due", money(balance.total_due))
    col3.metric("Total paid", money(balance.total_paid))

    advice = payment_flow.autopayment_advice(balance)
    if advice:
        with st.expander("🔁 Autopayment helper"):
            st.markdown(f"**Status:** {ADVICE_LABELS[advice.status]}")
            if advice.detected_amount is not None:
                note = "matches your rate" if advice.detected_matches_rate else "differs from your rate"
                st.markdown(
                    f"Detected autopayment: **{money(advice.detected_amount)}** "
                    f"({note}, based on your last {advice.detected_frequency} payments)"
                )
            if not advice.is_on_track:
                direction = "ahead" if advice.status == AutopaymentStatus.AHEAD else "behind"
                st.markdown(f"You're {advice.weeks_to_settle:.1f} weeks {direction}.")
                st.markdown(
                    f"Pay **{money(advice.suggested_weekly_payment)}** per week for the next "
                    f"{advice.correction_weeks} weeks to balance out, or keep paying "
                    f"{money(advice.required_weekly)} if you're happy with the balance."
                )

    with st.expander("📅 Weekly breakdown"):
        rows = [
            {
                "Week": week.week_start.isoformat(),
                "Due": week.due_date.isoformat(),
                "Amount due": money(week.amount_due),
                "Paid": money(week.amount_paid),
                "Balance": money(week.balance),
                "Payments": len(week.payment_transactions),
            }
            for week in reversed(balance.weekly_breakdown)
        ]
        st.dataframe(rows, use_container_width=True, hide_index=True)
        if balance.unassigned_paid:
            st.caption(
                f"{money(balance.unassigned_paid)} was paid outside every weekly window "
                "and only counts toward the total."
            )


def render_payments_page(payment_flow: PaymentDashboardFlow):
    """Render the rent payments page."""
    st.title("💸 Rent Payments")

    correlation_id = create_correlation_id()
    try:
        summary = run_async(payment_flow.load_summary(correlation_id=correlation_id))
        current_week = run_async(payment_flow.load_current_week(correlation_id=correlation_id))
    except StorageError as e:
        st.error(f"Could not load payments: {e}")
        return

    if not summary.flatmates:
        st.info("No flatmates yet. Add flatmates and payment schedules to get started.")
        return

    names = {b.user_id: b.display_name for b in summary.flatmates}
    current_user_id: Optional[UUID] = st.sidebar.selectbox(
        "Viewing as",
        options=list(names),
        format_func=lambda user_id: names[user_id],
    )

    col1, col2, col3 = st.columns(3)
    col1.metric("Household due", money(summary.total_due))
    col2.metric("Household paid", money(summary.total_paid))
    col3.metric("Household balance", money(summary.total_balance))

    st.markdown("### This week")
    st.dataframe(
        [
            {
                "Flatmate": names.get(status.user_id, status.user_name or ""),
                "Due": money(status.amount_due),
                "Paid": money(status.amount_paid),
                "Status": STATUS_LABELS[status.status],
            }
            for status in current_week
        ],
        use_container_width=True,
        hide_index=True,
    )

    st.markdown("### Balances")
    for balance in sort_flatmates(summary.flatmates, current_user_id):
        render_flatmate_card(payment_flow, balance)
        st.markdown("---")


def render_category_detail(expense_flow: ExpenseDashboardFlow, category_id: UUID, period: ExpensePeriod):
    """One category's totals, monthly breakdown and transactions."""
    try:
        summary, transactions, breakdown = run_async(
            expense_flow.load_category(category_id, period=period)
        )
    except StorageError as e:
        st.error(f"Could not load category: {e}")
        return

    if summary is None:
        st.warning("This category no longer exists.")
        return

    st.markdown(f"### {summary.category.name}")
    col1, col2, col3 = st.columns(3)
    col1.metric("Total", money(summary.total_amount))
    col2.metric("Transactions", summary.transaction_count)
    col3.metric("Average", money(summary.average_amount))

    st.markdown("#### Last 6 months")
    st.bar_chart(
        [{"month": m.month, "amount": float(m.amount)} for m in breakdown],
        x="month",
        y="amount",
    )

    st.markdown("#### Transactions")
    if not transactions:
        st.info("No transactions in this period.")
        return
    st.dataframe(
        [
            {
                "Date": e.transaction.transaction_date.isoformat(),
                "Description": e.transaction.description,
                "Amount": money(abs(e.transaction.amount)),
                "Notes": e.expense_transaction.notes or "",
            }
            for e in transactions
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_expenses_page(expense_flow: ExpenseDashboardFlow):
    """Render the shared expenses page."""
    st.title("🧾 Shared Expenses")

    period = st.selectbox(
        "Period",
        options=list(ExpensePeriod),
        index=1,
        format_func=lambda p: p.value.title(),
    )

    correlation_id = create_correlation_id()
    try:
        summaries, burn_rate, monthly = run_async(
            expense_flow.load_overview(period, correlation_id=correlation_id)
        )
        recent = run_async(expense_flow.calculator.get_all_expense_transactions(limit=25))
    except StorageError as e:
        st.error(f"Could not load expenses: {e}")
        return

    if summaries:
        categories = {s.category.id: s.category.name for s in summaries}
        selected: Optional[UUID] = st.selectbox(
            "Category",
            options=[None, *categories],
            format_func=lambda category_id: "All categories" if category_id is None else categories[category_id],
        )
        if selected is not None:
            render_category_detail(expense_flow, selected, period)
            return

        columns = st.columns(min(len(summaries), 4))
        for i, summary in enumerate(summaries):
            delta = f"{summary.trend:+.0f}%" if summary.trend is not None else None
            columns[i % len(columns)].metric(
                summary.category.name,
                money(summary.total_amount),
                delta=delta,
                delta_color="inverse",
                help=f"{summary.transaction_count} transactions, average {money(summary.average_amount)}",
            )
    else:
        st.info("No expense categories yet.")

    if burn_rate and burn_rate.days_covered:
        st.markdown("### ⚡ Power burn rate")
        col1, col2, col3 = st.columns(3)
        col1.metric("Per day", money(burn_rate.daily_rate))
        col2.metric("Per week", money(burn_rate.weekly_rate))
        col3.metric("Per month", money(burn_rate.monthly_rate))
        if burn_rate.last_payment_date:
            st.caption(
                f"Last top-up {money(burn_rate.last_payment_amount)} "
                f"on {burn_rate.last_payment_date.isoformat()}"
            )

    if monthly and summaries:
        st.markdown("### Monthly spending")
        chart_rows = [
            {
                "month": f"{data.month_date:%Y-%m}",
                **{c.category_name: float(c.amount) for c in data.categories},
            }
            for data in monthly
        ]
        st.bar_chart(chart_rows, x="month")

    st.markdown("### Recent expenses")
    st.dataframe(
        [
            {
                "Date": e.transaction.transaction_date.isoformat(),
                "Category": e.category.name,
                "Description": e.transaction.description,
                "Amount": money(abs(e.transaction.amount)),
            }
            for e in recent
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_settings_page(settings_flow: SettingsFlow):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Analysis Start Date")
    st.markdown(
        "Only transactions and payment obligations after this date will be counted."
    )

    current = run_async(settings_flow.current_analysis_start_date())
    raw_value = st.text_input(
        "Start date (YYYY-MM-DD)",
        value=current.isoformat() if current else "",
        help="Leave blank to use the default lookback window",
    )

    col1, col2 = st.columns(2)
    with col1:
        save = st.button("💾 Save Analysis Start Date", type="primary")
    with col2:
        clear = st.button("🗑️ Clear", disabled=current is None)

    if save or clear:
        result = run_async(
            settings_flow.update_analysis_start_date(
                None if clear else raw_value,
                correlation_id=create_correlation_id(),
            )
        )
        if result.success:
            st.success(result.message)
        else:
            st.error(result.message)

    st.markdown("---")
    st.markdown("### Connection Status")

    status = validate_all_settings()
    services = [
        ("Ledger rules", "ledger"),
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
