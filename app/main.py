"""
Streamlit Frontend for Finance Tracker

DESIGN PRINCIPLES:
1. Every form maps to one FinanceManager operation
2. Errors are shown in plain language, never as stack traces
3. Balances are only ever changed by recording transactions
4. The assistant is optional: the app works without Gemini configured

The UI holds no financial logic. Whatever it shows comes from the
manager's read accessors and reports.
"""

import asyncio

import streamlit as st
from pydantic import ValidationError

from finance_tracker.config import get_settings, validate_all_settings
from finance_tracker.ledger import LedgerError
from finance_tracker.ledger.limits import PERIOD_LABELS
from finance_tracker.models import (
    AccountType,
    CardType,
    CategoryType,
    GoalPriority,
    LimitPeriod,
    LimitStartType,
    PaymentMethod,
    TransactionStatus,
    TransactionType,
)
from finance_tracker.orchestrator import (
    AssistantFlow,
    FinanceManager,
    create_app_components,
    describe_validation_error,
)
from finance_tracker.services.storage import StorageError
from finance_tracker.utils.formatting import format_date, format_money


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

INVOICE_BADGES = {
    "overdue": "🔴 Overdue",
    "urgent": "🟠 Due soon",
    "warning": "🟡 Due this week",
    "ok": "🟢 On time",
    "unknown": "⚪ No due day",
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
    return create_app_components()


def money(value) -> str:
    return format_money(value, get_settings().app.currency_symbol)


def submit(action, success_message: str) -> bool:
    """Run a manager operation and report the outcome."""
    try:
        action()
    except ValidationError as e:
        st.error(f"Please check the form: {describe_validation_error(e)}")
        return False
    except (LedgerError, StorageError) as e:
        st.error(str(e))
        return False
    st.success(success_message)
    return True


def main():
    """Main application entry point."""
    manager, assistant_flow = get_components()

    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "📊 Overview",
            "🧾 Transactions",
            "🏦 Accounts & Cards",
            "🎯 Goals",
            "🚦 Limits",
            "🏷️ Categories",
            "💬 Assistant",
            "⚙️ Settings",
        ],
        index=0,
    )

    if page == "📊 Overview":
        render_overview_page(manager)
    elif page == "🧾 Transactions":
        render_transactions_page(manager)
    elif page == "🏦 Accounts & Cards":
        render_accounts_page(manager)
    elif page == "🎯 Goals":
        render_goals_page(manager)
    elif page == "🚦 Limits":
        render_limits_page(manager)
    elif page == "🏷️ Categories":
        render_categories_page(manager)
    elif page == "💬 Assistant":
        render_assistant_page(assistant_flow)
    elif page == "⚙️ Settings":
        render_settings_page(manager)


def render_overview_page(manager: FinanceManager):
    st.title("📊 Overview")

    summary = manager.get_summary()
    col1, col2, col3 = st.columns(3)
    col1.metric("Total balance", money(summary.total_balance))
    col2.metric("Income this month", money(summary.monthly_income))
    col3.metric("Expenses this month", money(summary.monthly_expenses))

    st.markdown("### Cash flow")
    flow = manager.cash_flow()
    st.bar_chart(
        [
            {"month": p.month, "income": float(p.income), "expenses": float(p.expenses)}
            for p in flow
        ],
        x="month",
        y=["income", "expenses"],
    )

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("### Expenses by category")
        breakdown = manager.category_breakdown()
        if breakdown:
            st.bar_chart(
                [{"category": item.name, "amount": float(item.value)} for item in breakdown],
                x="category",
                y="amount",
            )
        else:
            st.info("No expenses recorded yet.")

    with col2:
        st.markdown("### Balance evolution")
        evolution = manager.balance_evolution()
        if evolution:
            st.line_chart(
                [{"date": p.date.isoformat(), "balance": float(p.balance)} for p in evolution],
                x="date",
                y="balance",
            )
        else:
            st.info("Record a transaction to see your balance over time.")

    goals = manager.goals_overview()
    limits = manager.limits_overview()
    annual = manager.annual_totals()

    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("### Goals")
        st.write(f"Active: {goals.active_goals} | Completed: {goals.completed_goals}")
        st.write(f"Saved {money(goals.total_saved_amount)} of {money(goals.total_goal_amount)}")
        st.progress(min(goals.average_progress / 100, 1.0))
    with col2:
        st.markdown("### Limits")
        st.write(f"Active: {limits.active_limits}")
        st.write(f"Near: {limits.near_limits} | Exceeded: {limits.exceeded_limits}")
        st.write(f"Used {money(limits.total_used_amount)} of {money(limits.total_limit_amount)}")
    with col3:
        st.markdown(f"### {annual.year}")
        st.write(f"Income: {money(annual.income)}")
        st.write(f"Expenses: {money(annual.expenses)}")


def _category_picker(manager: FinanceManager, key: str, transaction_type: str = None):
    categories = (
        manager.catalog.categories_for(transaction_type)
        if transaction_type
        else manager.list_categories()
    )
    category = st.selectbox(
        "Category",
        options=categories,
        format_func=lambda c: c.name,
        key=f"{key}_category",
    )
    subcategory = st.selectbox(
        "Subcategory",
        options=[None] + (category.subcategories if category else []),
        format_func=lambda s: "-" if s is None else s.name,
        key=f"{key}_subcategory",
    )
    return category, subcategory


def render_transactions_page(manager: FinanceManager):
    st.title("🧾 Transactions")

    accounts = manager.list_accounts()
    cards = manager.list_cards()

    with st.expander("➕ New transaction"):
        tx_type = st.selectbox(
            "Type", options=list(TransactionType), format_func=lambda t: t.value.title()
        )
        category, subcategory = _category_picker(manager, "new_tx", tx_type.value)

        with st.form("new_transaction", clear_on_submit=True):
            title = st.text_input("Title")
            description = st.text_input("Description")
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
            tx_date = st.date_input("Date", value=manager.today())
            record = {
                "title": title,
                "description": description,
                "amount": amount,
                "type": tx_type.value,
                "category": category.id if category else "",
                "subcategory": subcategory.id if subcategory else None,
                "date": tx_date,
            }

            if tx_type == TransactionType.TRANSFER:
                source = st.selectbox("From account", accounts, format_func=lambda a: a.name)
                target = st.selectbox("To account", accounts, format_func=lambda a: a.name)
                record["status"] = TransactionStatus.PAID.value
                record["transfer_info"] = {
                    "from_account_id": source.id if source else "",
                    "to_account_id": target.id if target else "",
                }
            else:
                method = st.selectbox(
                    "Payment method", list(PaymentMethod), format_func=lambda m: m.value.upper()
                )
                sources = accounts if method == PaymentMethod.ACCOUNT else cards
                source = st.selectbox(
                    "Account / card",
                    [None] + sources,
                    format_func=lambda s: "-" if s is None else s.name,
                )
                status = st.selectbox(
                    "Status", list(TransactionStatus), format_func=lambda s: s.value.title()
                )
                record.update({
                    "payment_method": method.value,
                    "payment_source": source.id if source else None,
                    "status": status.value,
                })

            if st.form_submit_button("Save", type="primary"):
                submit(lambda: manager.create_transaction(record), "Transaction recorded.")

    st.markdown("### History")
    col1, col2, col3 = st.columns(3)
    period = col1.selectbox("Period", ["all", "today", "week", "month", "year"])
    type_filter = col2.selectbox(
        "Type",
        [None] + list(TransactionType),
        format_func=lambda t: "All" if t is None else t.value.title(),
    )
    search = col3.text_input("Search")

    history = manager.transaction_history(period=period, type=type_filter, search=search)
    date_format = get_settings().app.date_format
    st.dataframe(
        [
            {
                "Date": format_date(tx.date, date_format),
                "Title": tx.title,
                "Amount": money(tx.amount),
                "Type": tx.type.value,
                "Category": manager.catalog.display_name(tx.category, tx.subcategory),
                "Status": tx.status.value,
            }
            for tx in history
        ],
        use_container_width=True,
    )

    pending = [tx for tx in history if tx.status == TransactionStatus.PENDING]
    if pending:
        st.markdown("### Pending")
        for tx in pending:
            col1, col2 = st.columns([3, 1])
            col1.write(f"{tx.title} - {money(tx.amount)}")
            settled = "received" if tx.type == TransactionType.INCOME else "paid"
            if col2.button(f"Mark {settled}", key=f"settle_{tx.id}"):
                if submit(
                    lambda: manager.update_transaction(tx.id, {"status": settled}),
                    f"Marked as {settled}.",
                ):
                    st.rerun()


def render_accounts_page(manager: FinanceManager):
    st.title("🏦 Accounts & Cards")

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("### Accounts")
        for account in manager.list_accounts():
            st.write(f"**{account.name}** ({account.type.value}) - {money(account.balance)}")

        with st.form("new_account", clear_on_submit=True):
            name = st.text_input("Name")
            bank = st.text_input("Bank")
            account_type = st.selectbox(
                "Type", list(AccountType), format_func=lambda t: t.value.title()
            )
            balance = st.number_input("Initial balance", step=1.0, format="%.2f")
            if st.form_submit_button("Add account"):
                submit(
                    lambda: manager.create_account({
                        "name": name,
                        "bank": bank,
                        "type": account_type.value,
                        "balance": balance,
                    }),
                    "Account created.",
                )

    with col2:
        st.markdown("### Cards")
        for card in manager.list_cards():
            invoice = manager.card_invoice(card.id)
            st.write(
                f"**{card.name}** - used {money(card.used)} of {money(card.limit)} "
                f"(available {money(card.available)})"
            )
            st.caption(
                f"Invoice {invoice.month}: {money(invoice.total)} | "
                f"due {format_date(invoice.due_date)} | {INVOICE_BADGES[invoice.status]}"
            )

        with st.form("new_card", clear_on_submit=True):
            name = st.text_input("Name")
            bank = st.text_input("Bank")
            card_type = st.selectbox("Type", list(CardType), format_func=lambda t: t.value.title())
            limit = st.number_input("Limit", min_value=0.0, step=100.0, format="%.2f")
            due_day = st.number_input("Due day", min_value=1, max_value=31, value=10)
            closing_day = st.number_input("Closing day", min_value=1, max_value=31, value=3)
            if st.form_submit_button("Add card"):
                submit(
                    lambda: manager.create_card({
                        "name": name,
                        "bank": bank,
                        "type": card_type.value,
                        "limit": limit,
                        "due_day": int(due_day),
                        "closing_day": int(closing_day),
                    }),
                    "Card added.",
                )


def render_goals_page(manager: FinanceManager):
    st.title("🎯 Goals")

    for goal in manager.list_goals():
        projection = manager.goal_projection(goal.id)
        st.markdown(f"**{goal.title}** - {money(goal.current_amount)} of {money(goal.target_amount)}")
        st.progress(projection.progress_percentage / 100)
        st.caption(
            f"{projection.estimated_months} months at {money(goal.monthly_contribution)}/month | "
            f"{projection.days_remaining} days left"
        )
        if goal.ai_suggestion:
            st.warning(goal.ai_suggestion)

    with st.expander("➕ New goal"):
        with st.form("new_goal", clear_on_submit=True):
            title = st.text_input("Title")
            category = st.selectbox(
                "Category", manager.list_categories(), format_func=lambda c: c.name
            )
            target = st.number_input("Target amount", min_value=0.0, step=100.0, format="%.2f")
            current = st.number_input("Already saved", min_value=0.0, step=100.0, format="%.2f")
            monthly = st.number_input(
                "Monthly contribution", min_value=0.0, step=50.0, format="%.2f"
            )
            target_date = st.date_input("Target date")
            priority = st.selectbox(
                "Priority", list(GoalPriority), index=1, format_func=lambda p: p.value.title()
            )
            if st.form_submit_button("Create goal", type="primary"):
                submit(
                    lambda: manager.create_goal({
                        "title": title,
                        "category": category.id,
                        "target_amount": target,
                        "current_amount": current,
                        "monthly_contribution": monthly,
                        "target_date": target_date,
                        "priority": priority.value,
                    }),
                    "Goal created.",
                )


def render_limits_page(manager: FinanceManager):
    st.title("🚦 Limits")

    for limit in manager.list_limits():
        usage = manager.limit_manager.usage(limit)
        st.markdown(
            f"**{limit.title}** ({PERIOD_LABELS[limit.period]}) - "
            f"{money(limit.current_amount)} of {money(limit.limit_amount)}"
        )
        st.progress(usage.usage_percentage / 100)
        st.caption(
            f"{manager.limit_manager.status_label(limit)} | resets on {format_date(limit.reset_date)}"
        )

    with st.expander("➕ New limit"):
        category, subcategory = _category_picker(manager, "new_limit", "expense")
        with st.form("new_limit", clear_on_submit=True):
            title = st.text_input("Title")
            amount = st.number_input("Limit amount", min_value=0.0, step=50.0, format="%.2f")
            period = st.selectbox(
                "Period", list(LimitPeriod), index=1, format_func=lambda p: PERIOD_LABELS[p]
            )
            threshold = st.slider(
                "Alert threshold (%)", 1, 100, get_settings().app.default_alert_threshold
            )
            start_date = st.date_input("Start date", value=manager.today())
            start_type = st.selectbox(
                "Cycle starts", list(LimitStartType),
                format_func=lambda s: s.value.replace("_", " ").title(),
            )
            if st.form_submit_button("Create limit", type="primary"):
                submit(
                    lambda: manager.create_limit({
                        "title": title,
                        "category": category.id if category else "",
                        "subcategory": subcategory.id if subcategory else None,
                        "limit_amount": amount,
                        "period": period.value,
                        "alert_threshold": threshold,
                        "start_date": start_date,
                        "start_type": start_type.value,
                    }),
                    "Limit created.",
                )


def render_categories_page(manager: FinanceManager):
    st.title("🏷️ Categories")

    for category in manager.list_categories():
        with st.expander(f"{category.name} ({category.type.value})"):
            st.write(", ".join(sub.name for sub in category.subcategories) or "-")

    col1, col2 = st.columns(2)
    with col1:
        with st.form("new_category", clear_on_submit=True):
            name = st.text_input("New category")
            category_type = st.selectbox(
                "Type", list(CategoryType), format_func=lambda t: t.value.title()
            )
            if st.form_submit_button("Add category"):
                submit(
                    lambda: manager.add_custom_category(name, type=category_type),
                    "Category added.",
                )
    with col2:
        with st.form("new_subcategory", clear_on_submit=True):
            parent = st.selectbox(
                "Category", manager.list_categories(), format_func=lambda c: c.name
            )
            name = st.text_input("New subcategory")
            if st.form_submit_button("Add subcategory"):
                submit(
                    lambda: manager.add_custom_subcategory(parent.id, name),
                    "Subcategory added.",
                )


def render_assistant_page(assistant_flow: AssistantFlow):
    st.title("💬 Assistant")

    if assistant_flow is None:
        st.warning("The assistant needs a Gemini API key. See the Settings page.")
        return

    with st.expander("📝 Examples"):
        st.markdown("""
        - "spent 50 at the supermarket"
        - "create nubank checking account balance 1000"
        - "add nubank card limit 2000 due day 5 closes day 1"
        - "how am I doing this month?"
        """)

    history = st.session_state.setdefault("assistant_history", [])
    for role, text in history:
        with st.chat_message(role):
            st.markdown(text)

    message = st.chat_input("Tell me what happened...")
    if message:
        history.append(("user", message))
        with st.spinner("Processing your request..."):
            reply = run_async(assistant_flow.handle_message(message))
        history.append(("assistant", reply))
        st.rerun()


def render_settings_page(manager: FinanceManager):
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")
    status = validate_all_settings()
    services = [
        ("Application", "app"),
        ("Gemini (Assistant)", "gemini"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown(f"Storage backend: **{manager.store.backend}**")

    st.markdown("---")
    st.markdown("### Danger zone")
    confirm = st.checkbox("I understand this erases every account, card and transaction")
    if st.button("🗑️ Reset all data", disabled=not confirm):
        manager.reset_all_data()
        st.success("All data has been cleared.")


if __name__ == "__main__":
    main()
