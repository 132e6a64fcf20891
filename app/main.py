"""
Streamlit Frontend for Haseela

The screens a freelancer uses day to day: log clients and tasks, tick
tasks off as they are paid, set a monthly goal and see how the month
and the year are going.

DESIGN PRINCIPLES:
1. Every figure is recomputed from the current state on each rerun
2. Invalid input is reported, never silently coerced
3. Destructive actions (delete client, import, reset) ask first
4. Saving is automatic; the sidebar shows when it last happened

Remote pushes run on a background event loop so a slow network never
holds up the page.
"""

import asyncio
import threading

import streamlit as st

from haseela.audit import configure_logging
from haseela.config import get_settings, validate_all_settings
from haseela.models.ledger import ClientColor
from haseela.orchestrator import SessionPhase, SyncCoordinator, create_app_components
from haseela.reports import (
    client_summaries,
    dashboard_summary,
    goal_history,
    report_summary,
)
from haseela.services.backup import BACKUP_MIME_TYPE, InvalidDocumentError
from haseela.services.identity import IdentityError
from haseela.validation import LedgerInputValidator


# Page configuration
st.set_page_config(
    page_title="Haseela",
    page_icon="💼",
    layout="wide",
    initial_sidebar_state="expanded",
)

COLOR_HEX = {
    ClientColor.INDIGO: "#6366f1",
    ClientColor.VIOLET: "#8b5cf6",
    ClientColor.EMERALD: "#10b981",
    ClientColor.AMBER: "#f59e0b",
    ClientColor.ROSE: "#f43f5e",
    ClientColor.CYAN: "#06b6d4",
}

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .goal-box {
        padding: 20px;
        background-color: #eef2ff;
        border-radius: 10px;
        border-left: 5px solid #6366f1;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #1e293b;
    }
    .client-dot {
        display: inline-block;
        width: 12px;
        height: 12px;
        border-radius: 50%;
        margin-right: 8px;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_event_loop() -> asyncio.AbstractEventLoop:
    """A long-lived loop in a daemon thread; pushes keep running between reruns."""
    loop = asyncio.new_event_loop()
    threading.Thread(target=loop.run_forever, daemon=True).start()
    return loop


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    return asyncio.run_coroutine_threadsafe(coro, get_event_loop()).result()


@st.cache_resource
def get_coordinator() -> SyncCoordinator:
    """Get or create the sync coordinator (cached)."""
    app_settings = get_settings().app
    configure_logging(app_settings.log_format, app_settings.log_level)

    coordinator = create_app_components(use_remote=True)
    run_async(coordinator.start())
    return coordinator


def money(currency: str, amount: float) -> str:
    return f"{currency}{amount:,.2f}"


def color_dot(color: str) -> str:
    palette = ClientColor.from_tag(color)
    hex_value = COLOR_HEX[palette] if palette else "#94a3b8"
    return f'<span class="client-dot" style="background-color:{hex_value}"></span>'


def main():
    """Main application entry point."""
    coordinator = get_coordinator()

    st.sidebar.title("💼 Haseela")
    st.sidebar.markdown("---")

    if coordinator.has_identity_provider:
        render_account_panel(coordinator)
        st.sidebar.markdown("---")

    if coordinator.phase in (SessionPhase.AUTHENTICATING, SessionPhase.LOADING):
        st.info("Loading your data...")
        st.stop()

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "👥 Clients", "🗂️ History", "📈 Reports", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if coordinator.last_saved_at:
        st.sidebar.caption(
            f"Last saved {coordinator.last_saved_at.strftime('%H:%M:%S')}"
        )
    if coordinator.pending_sync_count:
        st.sidebar.caption(f"Syncing {coordinator.pending_sync_count} change(s)...")

    if page == "📊 Dashboard":
        render_dashboard_page(coordinator)
    elif page == "👥 Clients":
        render_clients_page(coordinator)
    elif page == "🗂️ History":
        render_history_page(coordinator)
    elif page == "📈 Reports":
        render_reports_page(coordinator)
    elif page == "⚙️ Settings":
        render_settings_page(coordinator)


def render_account_panel(coordinator: SyncCoordinator):
    """Sign in / sign up / sign out in the sidebar."""
    if coordinator.is_authenticated:
        st.sidebar.markdown(f"Signed in as **{coordinator.session.email}**")
        if st.sidebar.button("Sign out"):
            run_async(coordinator.sign_out())
            st.rerun()
        return

    st.sidebar.markdown("Sign in to sync across devices.")
    email = st.sidebar.text_input("Email")
    password = st.sidebar.text_input("Password", type="password")

    col1, col2 = st.sidebar.columns(2)
    with col1:
        if st.button("Sign in"):
            try:
                run_async(coordinator.sign_in(email, password))
                st.rerun()
            except IdentityError as e:
                st.sidebar.error(str(e))
    with col2:
        if st.button("Sign up"):
            try:
                result = run_async(coordinator.sign_up(email, password))
                if result is None:
                    st.sidebar.info("Check your inbox to confirm your email.")
                else:
                    st.rerun()
            except IdentityError as e:
                st.sidebar.error(str(e))


def render_goal_form(coordinator: SyncCoordinator, key: str, label: str = "Set goal"):
    amount = st.text_input(
        "Monthly target",
        key=f"{key}_amount",
        placeholder="e.g. 5000",
    )
    if st.button(label, key=f"{key}_submit", type="primary"):
        result = LedgerInputValidator().validate_goal_amount(amount)
        if not result.is_valid:
            st.error(" ".join(result.messages))
            return
        run_async(coordinator.set_goal(amount))
        st.rerun()


def render_dashboard_page(coordinator: SyncCoordinator):
    """Render this month's overview."""
    summary = dashboard_summary(coordinator.state)
    currency = summary.currency

    st.title("📊 Dashboard")
    st.caption(summary.period.label)

    if summary.needs_goal:
        st.markdown("""
        <div class="goal-box">
            <h4>🎯 No goal for this month yet</h4>
            <p>Set a target to track how the month is going.</p>
        </div>
        """, unsafe_allow_html=True)
        render_goal_form(coordinator, key="dashboard_goal")
    else:
        st.markdown(
            f'<div class="big-number">{money(currency, summary.month_earnings)}</div>'
            f"<p>of {money(currency, summary.goal_amount)} this month</p>",
            unsafe_allow_html=True,
        )
        st.progress(summary.progress_percent / 100, text=f"{summary.progress_percent}%")
        with st.expander("Change this month's goal"):
            render_goal_form(coordinator, key="dashboard_goal_edit", label="Update goal")

    col1, col2 = st.columns(2)
    col1.metric("Completed tasks", summary.completed_tasks)
    col2.metric("Open tasks", summary.open_tasks)

    st.markdown("### Top clients")
    if not summary.top_clients:
        st.info("Add a client to get started.")
    for entry in summary.top_clients:
        st.markdown(
            f"{color_dot(entry.color)}**{entry.name}** · {money(currency, entry.earned)}",
            unsafe_allow_html=True,
        )


def render_clients_page(coordinator: SyncCoordinator):
    """Render client management: clients, their tasks, completion toggles."""
    st.title("👥 Clients")
    state = coordinator.state
    validator = LedgerInputValidator()

    with st.form("add_client", clear_on_submit=True):
        name = st.text_input("New client name")
        if st.form_submit_button("➕ Add client"):
            result = validator.validate_client_name(name)
            if result.is_valid:
                run_async(coordinator.add_client(name))
                st.rerun()
            else:
                st.error(" ".join(result.messages))

    if not state.clients:
        st.info("No clients yet.")
        return

    summaries = {summary.client_id: summary for summary in client_summaries(state)}

    for client in state.clients:
        summary = summaries[client.id]
        header = (
            f"{client.name} · {summary.completed_count}/{summary.total_count} done"
            f" · {money(state.currency, summary.earned)}"
        )
        with st.expander(header):
            st.progress(summary.completion_ratio)

            with st.form(f"add_task_{client.id}", clear_on_submit=True):
                col1, col2 = st.columns([3, 1])
                title = col1.text_input("Task", key=f"title_{client.id}")
                price = col2.text_input("Price", key=f"price_{client.id}")
                if st.form_submit_button("Add task"):
                    result = validator.validate_task(title, price)
                    if result.is_valid:
                        run_async(coordinator.add_task(client.id, title, price))
                        st.rerun()
                    else:
                        st.error(" ".join(result.messages))

            for task in client.tasks_newest_first:
                col1, col2, col3 = st.columns([1, 6, 1])
                with col1:
                    done = st.checkbox(
                        "Done",
                        value=task.is_completed,
                        key=f"done_{task.id}",
                        label_visibility="collapsed",
                    )
                    if done != task.is_completed:
                        run_async(coordinator.toggle_task(client.id, task.id))
                        st.rerun()
                with col2:
                    label = f"~~{task.title}~~" if task.is_completed else task.title
                    st.markdown(f"{label} · {money(state.currency, task.price)}")
                with col3:
                    if st.button("🗑️", key=f"delete_task_{task.id}"):
                        run_async(coordinator.delete_task(client.id, task.id))
                        st.rerun()

            st.markdown("---")
            confirm_key = f"confirm_delete_{client.id}"
            if st.session_state.get(confirm_key):
                st.warning(f"Delete {client.name} and all {len(client.tasks)} tasks?")
                col1, col2 = st.columns(2)
                if col1.button("Yes, delete", key=f"yes_{client.id}", type="primary"):
                    st.session_state[confirm_key] = False
                    run_async(coordinator.delete_client(client.id))
                    st.rerun()
                if col2.button("Cancel", key=f"no_{client.id}"):
                    st.session_state[confirm_key] = False
                    st.rerun()
            elif st.button("Delete client", key=f"delete_client_{client.id}"):
                st.session_state[confirm_key] = True
                st.rerun()


def render_history_page(coordinator: SyncCoordinator):
    """Render target vs. actual for every month that had a goal."""
    st.title("🗂️ History")
    currency = coordinator.state.currency
    records = goal_history(coordinator.state)

    if not records:
        st.info("Months with a goal will show up here.")
        return

    for record in records:
        status = "✅ Achieved" if record.achieved else "⏳ Short"
        st.markdown(
            f"**{record.period.label}** · {money(currency, record.earned)}"
            f" of {money(currency, record.target_amount)}"
            f" · {record.percent}% · {status}"
        )
        st.progress(min(record.percent, 100) / 100)


def render_reports_page(coordinator: SyncCoordinator):
    """Render lifetime totals, the six-month trend and the client split."""
    st.title("📈 Reports")
    summary = report_summary(coordinator.state)
    currency = summary.currency

    col1, col2 = st.columns(2)
    col1.metric("Lifetime income", money(currency, summary.lifetime_total))
    col2.metric("Average per goal month", money(currency, summary.average_monthly))

    st.markdown("### Last six months")
    st.bar_chart(
        {
            "month": [point.period.label for point in summary.trend],
            "earned": [point.earned for point in summary.trend],
        },
        x="month",
        y="earned",
        y_label=currency,
    )

    st.markdown("### Income by client")
    if not summary.distribution:
        st.info("Complete a task to see where your income comes from.")
        return

    for share in summary.distribution:
        st.markdown(
            f"{color_dot(share.color)}**{share.name}** · {money(currency, share.earned)}"
            f" · {share.share_percent}%",
            unsafe_allow_html=True,
        )
        st.progress(share.share_percent / 100)

    leader = summary.top_contributor
    if leader is not None:
        st.info(f"💡 {leader.name} brings in {leader.share_percent}% of your income.")


def render_settings_page(coordinator: SyncCoordinator):
    """Render backup, restore, reset and connection status."""
    st.title("⚙️ Settings")

    if coordinator.last_saved_at:
        st.caption(f"Last saved {coordinator.last_saved_at.strftime('%Y-%m-%d %H:%M:%S')}")

    st.markdown("### Backup")
    filename, content = coordinator.export_document()
    st.download_button(
        "⬇️ Export data",
        data=content,
        file_name=filename,
        mime=BACKUP_MIME_TYPE,
    )

    uploaded = st.file_uploader("Import a backup", type=["json"])
    if uploaded is not None:
        st.warning("Importing replaces ALL current data.")
        if st.button("Replace my data with this file", type="primary"):
            try:
                run_async(coordinator.import_document(uploaded.getvalue()))
                st.success("Backup imported.")
                st.rerun()
            except InvalidDocumentError as e:
                st.error(f"Could not import this file: {e}")

    st.markdown("---")
    st.markdown("### Reset")
    if st.session_state.get("confirm_reset"):
        st.error("This deletes every client, task and goal. It cannot be undone.")
        col1, col2 = st.columns(2)
        if col1.button("Yes, delete everything", type="primary"):
            st.session_state.confirm_reset = False
            run_async(coordinator.reset())
            st.rerun()
        if col2.button("Cancel"):
            st.session_state.confirm_reset = False
            st.rerun()
    elif st.button("🗑️ Reset all data"):
        st.session_state.confirm_reset = True
        st.rerun()

    st.markdown("---")
    st.markdown("### Connection Status")

    status = validate_all_settings()
    services = [
        ("Local cache", "local_cache"),
        ("Google Sheets (Sync)", "google_sheets"),
    ]
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
