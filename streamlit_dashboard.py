import hmac

import streamlit as st

from studylabs.config import ADMIN_CODE, APP_SUBTITLE, APP_TITLE, DATA_FOLDER, PARTICIPANT_COLUMNS
from studylabs.display import (
    badge_distribution_figure,
    completion_timeline_figure,
    filter_participants,
    generate_leaderboard_cards,
    summarize_leaderboard,
)
from studylabs.ingestion.roster import (
    PENDING_NAME,
    RosterParseError,
    clear_staged_upload,
    commit_staged_upload,
    stage_upload,
)
from studylabs.ranking.engine import rank_dataframe
from studylabs.storage import AppState, InvalidOverrideError, OverrideStore, ParticipantStore
from studylabs.utils import setup_logging

# --- Page Configuration ---
st.set_page_config(
    page_title=f"{APP_TITLE} Leaderboard",
    page_icon="🏆",
    layout="wide",
    initial_sidebar_state="collapsed"
)

logger = setup_logging("streamlit_dashboard")

CUSTOM_CSS = """
<style>
    .dashboard-title {
        font-size: 2.5rem !important;
        font-weight: 800 !important;
        margin-bottom: 0 !important;
        background: linear-gradient(135deg, #4285F4 0%, #34A853 50%, #FBBC05 100%);
        -webkit-background-clip: text;
        -webkit-text-fill-color: transparent;
        background-clip: text;
    }
    .dashboard-subtitle {
        color: light-dark(#6B7280, #9CA3AF);
        margin-top: 0.25rem;
    }
    .card-header {
        display: grid;
        grid-template-columns: 4rem 1fr auto;
        align-items: center;
        gap: 0.75rem;
        margin-bottom: 0.5rem;
    }
    .card-rank { text-align: center; font-size: 1.2rem; }
    .card-name { display: flex; flex-direction: column; }
    .card-name-text { font-weight: 600; font-size: 1.1rem; }
    .card-email { font-size: 0.8rem; opacity: 0.7; }
    .tag { font-size: 0.75rem; font-weight: 600; margin-top: 0.15rem; }
    .stats-grid { display: grid; grid-template-columns: repeat(2, 1fr); gap: 0.5rem; }
    .success-row { border-color: rgba(52, 168, 83, 0.6) !important; }
    .profile-link { text-decoration: none; font-weight: 600; }
    .profile-link.disabled { opacity: 0.4; cursor: not-allowed; }
    .empty-state { text-align: center; opacity: 0.7; padding: 1.5rem 0; }
</style>
"""


# --- Process-scoped State ---
@st.cache_resource
def get_app_state():
    """One fallback state per server process, shared by every session."""
    return AppState()


def get_stores():
    state = get_app_state()
    return ParticipantStore(state, DATA_FOLDER), OverrideStore(state, DATA_FOLDER)


def get_admin_code():
    """Passcode from the environment, else Streamlit secrets."""
    if ADMIN_CODE:
        return ADMIN_CODE
    try:
        return st.secrets.get("ADMIN_CODE")
    except Exception:
        # No secrets file configured
        return None


# --- Leaderboard Tab ---
def render_leaderboard(participant_store, override_store):
    df = rank_dataframe(participant_store.load(), override_store.load())

    if df.empty:
        st.info("No participants yet. Upload a roster from the Admin tab to populate the leaderboard.")
        return

    stats = summarize_leaderboard(df)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Participants", stats["participants"])
    col2.metric("Completed", stats["qualified"])
    col3.metric("Pinned", stats["pinned"])
    col4.metric("Avg Skill Badges", stats["avg_badges"])

    query = st.text_input(
        "Search",
        placeholder="Search by name or email...",
        label_visibility="collapsed",
        key="leaderboard_search",
    )
    filtered = filter_participants(df, query)
    st.html(f'<div class="ranking-cards">{generate_leaderboard_cards(filtered)}</div>')

    st.download_button(
        "Download leaderboard (CSV)",
        data=df[["rank"] + PARTICIPANT_COLUMNS].to_csv(index=False),
        file_name="leaderboard.csv",
        mime="text/csv",
    )

    with st.expander("📈 Program progress"):
        st.plotly_chart(badge_distribution_figure(df), use_container_width=True, config={'displayModeBar': False})
        timeline = completion_timeline_figure(df)
        if timeline is not None:
            st.plotly_chart(timeline, use_container_width=True, config={'displayModeBar': False})
        else:
            st.caption("No dated completions yet.")


# --- Admin Tab ---
def require_admin():
    if st.session_state.get("is_admin"):
        return True

    expected = get_admin_code()
    if not expected:
        st.error("Admin code not configured. Set STUDYLABS_ADMIN_CODE or ADMIN_CODE in Streamlit secrets.")
        return False

    with st.form("admin_login"):
        code = st.text_input("Enter Access Code", type="password")
        submitted = st.form_submit_button("Login")
        if submitted:
            if hmac.compare_digest(code.strip(), expected):
                st.session_state["is_admin"] = True
                st.rerun()
            else:
                st.error("Invalid access code.")
    return False


def roster_ui(participant_store, override_store):
    st.subheader("Upload Roster")
    st.caption("Columns: Name (A), Email (B), Profile URL (C), Skill Badges (G), Arcade Games (I), Completion Date (M)")

    upload = st.file_uploader("Roster CSV", type=["csv"], key="roster_upload")
    try:
        pending = stage_upload(st.session_state, upload, participant_store)
    except RosterParseError as e:
        logger.warning(f"Rejected roster {upload.name}: {e}")
        st.error(f"Failed to parse CSV: {e}")
        return

    if not pending:
        return

    st.markdown(f"Selected: **{st.session_state.get(PENDING_NAME) or '(unnamed)'}** "
                f"({pending['rows']} participants, {pending['qualified']} completed)")
    for w in pending["warnings"]:
        st.warning(w)

    preview = rank_dataframe(pending["participants"], override_store.load())
    st.dataframe(preview[["rank"] + PARTICIPANT_COLUMNS], use_container_width=True, hide_index=True)

    if st.button("Update Leaderboard", type="primary", disabled=not pending["participants"]):
        if commit_staged_upload(st.session_state, participant_store):
            st.success("Leaderboard updated!")
        else:
            st.warning("Leaderboard updated in memory only: the data folder is not writable.")


def overrides_ui(participant_store, override_store):
    st.subheader("Fixed Rankings")
    st.caption("Pinned participants are listed first, ordered by their fixed rank.")

    overrides = override_store.load()
    if overrides:
        st.dataframe(
            [{"Email": email, "Fixed Rank": rank} for email, rank in sorted(overrides.items(), key=lambda kv: kv[1])],
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.info("No fixed rankings set.")

    emails = sorted({p["Email"] for p in participant_store.load() if p.get("Email")})

    with st.form("pin_rank"):
        email = st.selectbox("Participant", options=emails, index=None, placeholder="Choose an email")
        fixed_rank = st.number_input("Fixed rank", min_value=1, step=1, value=1)
        if st.form_submit_button("Pin Rank", type="primary"):
            try:
                override_store.set(email, int(fixed_rank))
            except InvalidOverrideError as e:
                st.error(str(e))
            else:
                st.success(f"Pinned {email} at #{int(fixed_rank)}.")
                st.rerun()

    if overrides:
        col1, col2 = st.columns([3, 1])
        with col1:
            to_remove = st.selectbox("Remove fixed ranking", options=sorted(overrides), index=None, key="override_remove")
        with col2:
            st.write("")
            if st.button("Remove", disabled=to_remove is None):
                override_store.delete(to_remove)
                st.rerun()
        if st.button("Clear all fixed rankings"):
            override_store.save({})
            st.rerun()


def render_admin(participant_store, override_store):
    if not require_admin():
        return

    roster_ui(participant_store, override_store)
    st.divider()
    overrides_ui(participant_store, override_store)
    st.divider()
    if st.button("Logout"):
        st.session_state["is_admin"] = False
        clear_staged_upload(st.session_state)
        st.rerun()


# --- Main App ---
def main():
    st.html(CUSTOM_CSS)
    st.markdown(
        f'<h1 class="dashboard-title">{APP_TITLE}</h1><p class="dashboard-subtitle">{APP_SUBTITLE}</p>',
        unsafe_allow_html=True,
    )

    participant_store, override_store = get_stores()

    tab_leaderboard, tab_admin = st.tabs(["🏆 Leaderboard", "🛠️ Admin"])
    with tab_leaderboard:
        render_leaderboard(participant_store, override_store)
    with tab_admin:
        render_admin(participant_store, override_store)


if __name__ == "__main__":
    main()
