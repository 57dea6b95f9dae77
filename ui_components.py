# ui_components.py
from __future__ import annotations

import streamlit as st
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple

from models import PersonalizedTip

DIFFICULTY_BADGE = {"easy": "🟢 easy", "medium": "🟡 medium", "hard": "🔴 hard"}


def metric_grid(items: Sequence[Tuple[str, str]], per_row: int = 2):
    """Label/value pairs laid out left to right, `per_row` at a time."""
    for start in range(0, len(items), per_row):
        cols = st.columns(per_row)
        for col, (label, value) in zip(cols, items[start:start + per_row]):
            col.metric(label, value)


def callout(headline: str, caption: str):
    with st.container(border=True):
        st.markdown(f"#### {headline}")
        st.caption(caption)


def offer_card(offer: Dict[str, Any]):
    """Partner offer with its code (if any) and a link out."""
    with st.container(border=True):
        st.markdown(f"**{offer['partner']}** · {offer['category']}")
        st.write(offer["offer"])
        st.caption(offer["savings"])
        if offer.get("code"):
            st.code(offer["code"], language=None)
        st.link_button("visit", offer["url"], width="stretch")


def tip_card(tip: PersonalizedTip, on_accept: Callable | None = None, on_skip: Callable | None = None):
    """Tip with savings and accept/skip buttons; callbacks receive the tip."""
    with st.container(border=True):
        st.markdown(f"**{tip.title}**")
        st.write(tip.content)
        st.caption(
            f"{DIFFICULTY_BADGE.get(tip.difficulty, tip.difficulty)} · {tip.timeframe} · "
            f"saves ~{tip.potential_saving['carbon']:.1f} t CO₂ and £{tip.potential_saving['money']:,.0f} a year"
        )
        if tip.action:
            st.markdown(f"→ {tip.action}")
        if on_accept or on_skip:
            c1, c2 = st.columns(2)
            if on_accept:
                c1.button("i'll do it", key=f"accept_{tip.id}", on_click=on_accept, args=(tip,), width="stretch")
            if on_skip:
                c2.button("not now", key=f"skip_{tip.id}", on_click=on_skip, args=(tip,), width="stretch")


def bullet_list(lines: Iterable[str]):
    st.markdown("\n".join(f"- {line}" for line in lines))


def empty_state(msg: str, action_label: Optional[str] = None, on_click: Callable | None = None, key: str | None = None):
    st.info(msg)
    if action_label and on_click:
        st.button(action_label, on_click=on_click, key=key or f"empty_{abs(hash(msg))}")
