"""
Leaderboard Display Helpers

HTML card rendering, search filtering, summary numbers and plotly figures
for the Streamlit dashboard. Everything here works on the DataFrame
returned by studylabs.ranking.engine.rank_dataframe.
"""

import html

import pandas as pd
import plotly.express as px

from studylabs.config import QUALIFYING_ARCADE_GAMES, QUALIFYING_SKILL_BADGES

# --- Leaderboard Flourishes ---
# Icons and decorations for top participants
RANK_ICONS = {
    1: {"icon": "🥇", "color": "#FFD700", "label": "Gold"},
    2: {"icon": "🥈", "color": "#C0C0C0", "label": "Silver"},
    3: {"icon": "🥉", "color": "#CD7F32", "label": "Bronze"},
}

ACCENT_COLORS = {
    "primary": "#4285F4",       # Google blue - primary accent
    "success": "#34A853",       # Green - qualifying completion
    "warning": "#FBBC05",       # Yellow - pinned ranks
    "danger": "#EA4335",
    "muted": "#9AA0A6",
}


def filter_participants(df: pd.DataFrame, query: str) -> pd.DataFrame:
    """
    Case-insensitive search on name or email.

    Rank numbers come from the full leaderboard, so a participant keeps their
    position in search results.
    """
    q = (query or "").strip().lower()
    if not q or df.empty:
        return df

    names = df["Name"].fillna("").astype(str).str.lower()
    emails = df["Email"].fillna("").astype(str).str.lower()
    mask = names.str.contains(q, regex=False) | emails.str.contains(q, regex=False)
    return df[mask]


def summarize_leaderboard(df: pd.DataFrame) -> dict:
    """Headline numbers for the leaderboard page."""
    if df.empty:
        return {"participants": 0, "qualified": 0, "pinned": 0, "avg_badges": 0.0}

    return {
        "participants": len(df),
        "qualified": int(df["qualified"].sum()),
        "pinned": int(df["fixed_rank"].notna().sum()),
        "avg_badges": round(float(df["SkillBadges"].mean()), 1),
    }


def _profile_link(url) -> str:
    url = "" if pd.isna(url) else str(url).strip()
    if not url:
        return '<span class="profile-link disabled">↗ View Profile</span>'
    href = html.escape(url, quote=True)
    return f'<a href="{href}" target="_blank" rel="noopener noreferrer" class="profile-link">↗ View Profile</a>'


def generate_leaderboard_cards(df: pd.DataFrame) -> str:
    """
    Generate HTML cards for the leaderboard display.

    Podium ranks get medal icons, qualifying participants get a green accent,
    and pinned ranks are tagged.
    """
    if df.empty:
        return '<p class="empty-state">No participants found.</p>'

    card_base = "border:1px solid rgba(255,255,255,0.2);border-radius:12px;padding:1rem;margin-bottom:0.75rem;box-shadow:0 4px 20px rgba(0,0,0,0.15);"
    stat_layout = "display:flex;flex-direction:column;align-items:center;text-align:center;"
    label_style = "font-size:0.8rem;text-transform:uppercase;color:var(--text-color);font-weight:500;"
    value_style = "font-size:1.4rem;font-weight:700;color:var(--text-color);"

    cards = []
    for _, row in df.iterrows():
        rank_int = int(row["rank"])

        if rank_int in RANK_ICONS:
            info = RANK_ICONS[rank_int]
            rank_html = f'<span style="color:{info["color"]};font-weight:700;">{info["icon"]} {rank_int}</span>'
            card_style = card_base + f"box-shadow:inset 3px 0 0 0 {info['color']};background:linear-gradient(135deg, var(--secondary-background-color) 0%, {info['color']}1F 100%);"
        else:
            rank_html = f'<span style="font-weight:600;">#{rank_int}</span>'
            card_style = card_base + "background:var(--secondary-background-color);"

        css_class = "lb-card success-row" if row.get("qualified") else "lb-card"

        name = html.escape(str(row.get("Name") or ""))
        email = html.escape(str(row.get("Email") or ""))

        tags = ""
        if pd.notna(row.get("fixed_rank")):
            tags += f'<span class="tag pinned" style="color:{ACCENT_COLORS["warning"]};">📌 Pinned</span>'
        if row.get("qualified"):
            completed = row.get("CompletionDate")
            when = f" {html.escape(str(completed))}" if pd.notna(completed) and completed else ""
            tags += f'<span class="tag completed" style="color:{ACCENT_COLORS["success"]};">✔ Completed{when}</span>'

        badges = int(row.get("SkillBadges") or 0)
        games = int(row.get("ArcadeGames") or 0)

        card = (
            f'<div class="{css_class}" style="{card_style}">'
            f'<div class="card-header"><div class="card-rank">{rank_html}</div>'
            f'<div class="card-name"><span class="card-name-text">{name}</span><span class="card-email">{email}</span>{tags}</div>'
            f'<div class="card-profile">{_profile_link(row.get("ProfileURL"))}</div></div>'
            f'<div class="stats-grid">'
            f'<div style="{stat_layout}"><span style="{label_style}">Skill Badges</span><span style="{value_style}">{badges}</span></div>'
            f'<div style="{stat_layout}"><span style="{label_style}">Arcade Games</span><span style="{value_style}">{games}</span></div>'
            f'</div></div>'
        )
        cards.append(card)

    return "".join(cards)


def apply_plotly_style(fig):
    """Apply consistent styling to Plotly figures.

    Text colors are NOT explicitly set, allowing Streamlit to inject theme-aware
    colors automatically. Only structural elements (grids, backgrounds) use
    explicit neutral colors.
    """
    system_font = '-apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif'
    grid_color = "rgba(128, 128, 128, 0.4)"
    line_color = "rgba(128, 128, 128, 0.3)"

    fig.update_layout(
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(family=system_font, size=16),
        xaxis=dict(gridcolor=grid_color, linecolor=line_color, showgrid=True, zeroline=False),
        yaxis=dict(gridcolor=grid_color, linecolor=line_color, showgrid=True, zeroline=False),
        legend=dict(title_text="", bgcolor="rgba(0,0,0,0)", borderwidth=0),
        hoverlabel=dict(bgcolor="rgba(50, 50, 50, 0.9)", font=dict(color="#FFFFFF", family=system_font, size=14)),
        dragmode=False,  # Disable pan/zoom to prevent scroll hijacking on mobile
    )
    return fig


def badge_distribution_figure(df: pd.DataFrame):
    """Bar chart of how many participants hold each skill-badge count."""
    counts = (
        df.groupby("SkillBadges").size().reset_index(name="participants")
        if not df.empty
        else pd.DataFrame({"SkillBadges": [], "participants": []})
    )
    fig = px.bar(
        counts,
        x="SkillBadges",
        y="participants",
        labels={"SkillBadges": "Skill Badges", "participants": "Participants"},
        color_discrete_sequence=[ACCENT_COLORS["primary"]],
    )
    fig.add_vline(
        x=QUALIFYING_SKILL_BADGES,
        line_dash="dash",
        line_color=ACCENT_COLORS["success"],
        annotation_text=f"{QUALIFYING_SKILL_BADGES} badges + {QUALIFYING_ARCADE_GAMES} arcade",
    )
    return apply_plotly_style(fig)


def completion_timeline_figure(df: pd.DataFrame):
    """
    Cumulative qualifying completions by completion date.

    Returns:
        Plotly figure, or None when nobody has a dated completion yet
    """
    if df.empty:
        return None

    dates = pd.to_datetime(df.loc[df["qualified"], "CompletionDate"], format="%Y-%m-%d", errors="coerce").dropna()
    if dates.empty:
        return None

    daily = dates.dt.normalize().value_counts().sort_index()
    timeline = pd.DataFrame({"date": daily.index, "completions": daily.cumsum().values})

    fig = px.line(
        timeline,
        x="date",
        y="completions",
        markers=True,
        labels={"date": "Date", "completions": "Completed"},
        color_discrete_sequence=[ACCENT_COLORS["success"]],
    )
    fig.update_traces(fill="tozeroy", fillcolor="rgba(52, 168, 83, 0.15)", line=dict(width=3))
    return apply_plotly_style(fig)
