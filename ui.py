import os

import streamlit as st

ASSETS = os.path.join(os.path.dirname(os.path.abspath(__file__)), "assets")


def inject_css():
    try:
        with open(os.path.join(ASSETS, "styles.css"), "r", encoding="utf-8") as f:
            st.markdown(f"<style>{f.read()}</style>", unsafe_allow_html=True)
    except OSError:
        pass


def header(title: str, subtitle: str = ""):
    st.markdown(f"## {title}")
    if subtitle:
        st.caption(subtitle)


def helptext(text: str):
    st.caption(text)


def money(symbol: str, amount: float) -> str:
    return f"{symbol}{amount:,.0f}"


def kpi_card(col, label: str, value: str, caption: str = "", tone: str = ""):
    cls = f"kpi {tone}".strip()
    extra = f"<div class='caption'>{caption}</div>" if caption else ""
    col.markdown(
        f"<div class='card'><div class='caption'>{label}</div>"
        f"<div class='{cls}'>{value}</div>{extra}</div>",
        unsafe_allow_html=True,
    )


def status_badge(on_track: bool):
    if on_track:
        st.markdown("<span class='badge ok'>ON TRACK</span>", unsafe_allow_html=True)
    else:
        st.markdown("<span class='badge bad'>SHORTFALL</span>", unsafe_allow_html=True)
