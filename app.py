# app.py: schedule viewer, one round per page + interaction matrix
import html
import logging

import pandas as pd
import streamlit as st

import config
from engine import (
    available_options,
    build_matrix,
    duplicate_players,
    filter_rounds,
    load_schedule_csv,
    matrix_table,
    records_from_frame,
    resolve_name,
    round_table,
    teammate_mask,
)

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Court Schedule", layout="wide")


# ----------------------------
# Helpers
# ----------------------------

def load_records(path: str):
    try:
        st.session_state.records = records_from_frame(load_schedule_csv(path))
    except Exception as e:
        logger.exception("Could not load schedule from %s", path)
        st.session_state.records = None
        st.error(str(e))


def step_round(delta: int):
    st.session_state.round_index += delta


def court_card(court: str, team1: str, team2: str):
    st.markdown(
        f"""
        <div style="border:1px solid #bfdbfe;background:#eff6ff;border-radius:14px;padding:12px 14px;margin-bottom:10px;text-align:center">
          <div style="color:#6b7280">Court {court}</div>
          <div style="margin-top:6px;font-weight:700">{team1}</div>
          <div style="color:#6b7280;font-size:12px;margin:4px 0">vs</div>
          <div style="font-weight:700">{team2}</div>
        </div>
        """,
        unsafe_allow_html=True
    )


def render_round(rnd, names):
    st.markdown(f"### Round {rnd.label}")

    if rnd.is_empty:
        st.info("Nothing scheduled in this round.")
        return

    for m in rnd.matches:
        court_card(
            m.court,
            "&nbsp;/&nbsp;".join(html.escape(resolve_name(p, names)) for p in m.team1),
            "&nbsp;/&nbsp;".join(html.escape(resolve_name(p, names)) for p in m.team2),
        )

    if rnd.byes:
        st.caption("Byes: " + ", ".join(resolve_name(b, names) for b in rnd.byes))

    dupes = duplicate_players(rnd, names)
    if dupes:
        st.warning("Listed more than once in this round: " + ", ".join(dupes))


def styled_matrix(df: pd.DataFrame, mask):
    """Teammate cells blue, diagonal grey."""
    n = len(mask)

    def _styles(frame):
        css = pd.DataFrame("", index=frame.index, columns=frame.columns)
        for i in range(n):
            for j in range(n):
                if i == j:
                    css.iat[i, j] = "background-color: #9ca3af"
                elif mask[i][j]:
                    css.iat[i, j] = "background-color: #93c5fd"
        return css

    return df.style.apply(_styles, axis=None)


# ----------------------------
# Session state
# ----------------------------

for k, v in {
    "records": None,
    "round_index": 0,
    "last_selection": None,
}.items():
    if k not in st.session_state:
        st.session_state[k] = v


# ----------------------------
# Sidebar
# ----------------------------

st.sidebar.title("Schedule")
csv_path = st.sidebar.text_input("Schedule CSV path", value=config.SCHEDULE_CSV)

if st.sidebar.button("Load / Reload Schedule", use_container_width=True) or st.session_state.records is None:
    load_records(csv_path)

records = st.session_state.records or []

opts = available_options(records)
players = st.sidebar.selectbox("Players", options=opts["player_counts"], index=None, placeholder="Select number of players")

opts = available_options(records, players)
courts = st.sidebar.selectbox("Courts", options=opts["court_counts"], index=None, placeholder="Select courts")

opts = available_options(records, players, courts)
num_rounds = st.sidebar.selectbox(
    "Rounds",
    options=opts["round_counts"],
    index=len(opts["round_counts"]) - 1 if opts["round_counts"] else None,
    placeholder="Select rounds",
)

names = []
if players:
    with st.sidebar.expander("Player names", expanded=False):
        for i in range(1, players + 1):
            names.append(st.text_input(f"{i}", key=f"name_{i}", placeholder="Enter name"))

st.sidebar.divider()
page = st.sidebar.radio("View", ["Schedule", "Matrix"], index=0)


# ----------------------------
# Main
# ----------------------------

st.title("🏓 Court Schedule")

if not records:
    st.warning("Load a schedule CSV to continue.")
    st.stop()

if not (players and courts and num_rounds):
    st.info("Pick players, courts and rounds in the sidebar.")
    st.stop()

st.caption(f"Players: {players} | Courts: {courts} | Rounds: {num_rounds}")

# rebuilt in full on every rerun
rounds = filter_rounds(records, players, courts, num_rounds)
matrix = build_matrix(rounds, players)

selection = (players, courts, num_rounds)
if st.session_state.last_selection != selection:
    st.session_state.last_selection = selection
    st.session_state.round_index = 0


# ----------------------------
# Schedule page
# ----------------------------

if page == "Schedule":
    if not rounds:
        st.info("No rounds available.")
        st.stop()

    idx = max(0, min(st.session_state.round_index, len(rounds) - 1))
    st.session_state.round_index = idx

    b1, mid, b2 = st.columns([1, 2, 1])
    with b1:
        st.button("⬅ Previous", on_click=step_round, args=(-1,), use_container_width=True, disabled=idx == 0)
    with b2:
        st.button("Next ➡", on_click=step_round, args=(1,), use_container_width=True, disabled=idx == len(rounds) - 1)
    with mid:
        st.progress((idx + 1) / len(rounds))
        st.caption(f"{idx + 1} / {len(rounds)}")

    render_round(rounds[idx], names)

    with st.expander("Round as table"):
        st.dataframe(round_table(rounds[idx], names), use_container_width=True, hide_index=True)


# ----------------------------
# Matrix page
# ----------------------------

elif page == "Matrix":
    st.markdown("## Times on court together")
    st.caption("Blue = played as teammates at least once. Byes and never-played-with counts on the right.")

    df = matrix_table(matrix, names)
    st.dataframe(styled_matrix(df, teammate_mask(matrix)), use_container_width=True)
