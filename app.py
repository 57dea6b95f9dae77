# Project: Zero Zero: Streamlit App (carbon footprint, tips, local offers and the Zai coach)

# app.py
from __future__ import annotations

import logging
import uuid

import streamlit as st
import pandas as pd
import plotly.express as px

from carbon import calculate_full, savings_for_action, NATIONAL_AVERAGE_T
from chat import ChatSession, ZaiChat
from config import load_settings, Settings
from conversions import carbon_quicktips, convert_currency, format_currency, locale_for
from data_connectors import DataConnectors
from models import (
    CarType,
    ConfigurationError,
    EnergySource,
    HomeType,
    OnboardingData,
    OnboardingValidationError,
    TransportMode,
)
from onboarding import GOAL_CATALOG, PEOPLE_RANGE, ROOMS_RANGE, SPEND_RANGE, STEPS, OnboardingFlow
from openai_client import OpenAIClient
from resources import partner_offers, useful_links
from store import make_store
from tips import TipGenerator
from ui_components import bullet_list, callout, empty_state, metric_grid, offer_card, tip_card
from water_quality import CHARACTERISTICS, US_STATE_CODES, WaterQualityClient, rating_info, statistics

log = logging.getLogger(__name__)

# ---------------------------------
# App State / Navigation
# ---------------------------------

PAGES = {
    "Get started": "onboarding",
    "Dashboard": "dashboard",
    "Chat with Zai": "chat",
    "Water quality": "water",
    "Settings": "settings",
}

# tip category -> ACTION_SAVINGS key credited on accept
CATEGORY_ACTION = {
    "transport": "public_transport",
    "energy": "device_sleep",
    "money": "second_hand",
    "carbon": "meatless_meal",
    "local": "walking",
    "health": "walking",
}


def _init_state():
    if "settings" not in st.session_state:
        settings = load_settings()
        logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        st.session_state.settings = settings
    settings: Settings = st.session_state.settings

    if "services" not in st.session_state:
        llm = OpenAIClient(settings.openai_api_key, settings.openai_base_url, timeout=max(settings.request_timeout, 30.0))
        store = make_store(settings)
        st.session_state.services = {
            "llm": llm,
            "store": store,
            "connectors": DataConnectors(settings.google_maps_api_key, store=store, timeout=settings.request_timeout),
            "tips": TipGenerator(llm, model=settings.tips_model),
            "zai": ZaiChat(llm, model=settings.chat_model),
            "water": WaterQualityClient(settings.water_api_url, timeout=settings.request_timeout),
        }
    if "user_id" not in st.session_state:
        st.session_state.user_id = f"user_{uuid.uuid4().hex[:12]}"
    if "page" not in st.session_state:
        st.session_state.page = "onboarding"
    if "flow" not in st.session_state:
        st.session_state.flow = OnboardingFlow()
    for key in ("profile", "location", "footprint", "tips", "chat", "daily_tip", "businesses"):
        if key not in st.session_state:
            st.session_state[key] = None
    if "handled_tips" not in st.session_state:
        st.session_state.handled_tips = set()


def _svc(name: str):
    return st.session_state.services[name]


# ---------------------------------
# Shared sidebar
# ---------------------------------

def sidebar_nav():
    with st.sidebar:
        st.markdown("### 🌱 Zero Zero")

        current_page_key = st.session_state.get("page", None)
        page_labels = list(PAGES.keys())
        page_keys = list(PAGES.values())
        pending = st.session_state.pop("nav_sync", current_page_key if "nav_radio" not in st.session_state else None)
        if pending in page_keys:
            # programmatic jumps must reach the radio before it renders
            st.session_state.nav_radio = page_labels[page_keys.index(pending)]

        selected_label = st.radio(
            "Go to",
            page_labels,
            label_visibility="collapsed",
            key="nav_radio",
        )
        selected_route_key = PAGES[selected_label]
        if selected_route_key != current_page_key:
            st.session_state.page = selected_route_key

        st.markdown("---")
        profile: OnboardingData | None = st.session_state.profile
        if profile is not None:
            st.markdown(f"**{profile.name}** · {profile.postcode}")
            rewards = _svc("store").get_rewards(st.session_state.user_id) or {}
            st.caption(
                f"{rewards.get('total_points', 0)} points · "
                f"{rewards.get('carbon_saved_kg', 0):.1f} kg CO₂ saved"
            )
        else:
            st.caption("Finish onboarding to unlock your dashboard.")

        st.markdown("---")
        st.markdown("**Services**")
        for service, mode in st.session_state.settings.status().items():
            st.caption(f"{'🟢' if mode == 'live' else '🟡'} {service.replace('_', ' ')}: {mode}")


# ---------------------------------
# Onboarding
# ---------------------------------

def _step_input(key: str, current):
    """Widget for one onboarding step; returns the raw value for the validator."""
    if key == "name":
        return st.text_input("Your first name", value=current or "", key="ob_name")
    if key == "location":
        return st.text_input("Postcode or ZIP", value=current or "", placeholder="SW1A 1AA", key="ob_location")
    if key == "home_type":
        options = [h.value for h in HomeType]
        return st.radio("Home", options, index=options.index(current) if current in options else 0, horizontal=True, key="ob_home")
    if key == "rooms_people":
        current = current or {}
        c1, c2 = st.columns(2)
        with c1:
            rooms = st.number_input("Rooms", min_value=ROOMS_RANGE[0], max_value=ROOMS_RANGE[1],
                                    value=current.get("rooms", 3), step=1, key="ob_rooms")
        with c2:
            people = st.number_input("People", min_value=PEOPLE_RANGE[0], max_value=PEOPLE_RANGE[1],
                                     value=current.get("people", 2), step=1, key="ob_people")
        return {"rooms": int(rooms), "people": int(people)}
    if key == "transport":
        current = current or {}
        modes = [m.value for m in TransportMode]
        mode = st.radio("Main way of getting around", modes,
                        index=modes.index(current["transport"]) if current.get("transport") in modes else 0,
                        horizontal=True, key="ob_transport")
        if mode == TransportMode.CAR.value:
            cars = [c.value for c in CarType]
            car = st.selectbox("Car type", cars,
                               index=cars.index(current["car_type"]) if current.get("car_type") in cars else 0,
                               key="ob_car")
            return (mode, car)
        return mode
    if key == "energy_source":
        options = [e.value for e in EnergySource]
        return st.radio("Home energy", options, index=options.index(current) if current in options else 0, horizontal=True, key="ob_energy")
    if key == "monthly_spend":
        return st.slider("Monthly spend (£)", min_value=SPEND_RANGE[0], max_value=SPEND_RANGE[1],
                         value=current or 1500, step=100, key="ob_spend")
    if key == "goals":
        return st.multiselect("Pick the goals that matter to you", GOAL_CATALOG, default=list(current or ()), key="ob_goals")
    raise KeyError(key)


def _finish_onboarding(flow: OnboardingFlow):
    profile = flow.complete()
    st.session_state.profile = profile
    st.session_state.location = _svc("connectors").geocode(profile.postcode)
    st.session_state.footprint = None
    st.session_state.tips = None
    st.session_state.chat = None
    st.session_state.daily_tip = None
    st.session_state.businesses = None
    st.session_state.handled_tips = set()
    _svc("store").create_user_profile({"id": st.session_state.user_id, **profile.to_dict()})
    log.info("Onboarding complete for %s", st.session_state.user_id)


def page_onboarding():
    flow: OnboardingFlow = st.session_state.flow
    st.title("Let's get to know you")
    st.caption("Eight quick questions and we'll work out your footprint and what you could save.")

    st.progress(flow.progress, text=f"step {flow.current_step + 1} of {len(STEPS)}")
    st.subheader(flow.question)

    raw = _step_input(flow.step_key, flow.initial_value())

    c1, c2 = st.columns(2)
    with c1:
        if st.button("back", disabled=flow.current_step == 0, width="stretch", key="ob_back"):
            flow.back()
            st.rerun()
    with c2:
        last = flow.current_step == len(STEPS) - 1
        if st.button("finish" if last else "next", type="primary", width="stretch", key="ob_next"):
            try:
                done = flow.submit(raw)
            except OnboardingValidationError as e:
                st.error(str(e))
                return
            if done:
                _finish_onboarding(flow)
                _set_page("dashboard")
            st.rerun()

    if flow.is_complete:
        empty_state("You're all set. Change an answer with back, or head to the dashboard.")


# ---------------------------------
# Dashboard
# ---------------------------------

def _footprint():
    if st.session_state.footprint is None:
        st.session_state.footprint = calculate_full(st.session_state.profile, st.session_state.location)
    return st.session_state.footprint


def _on_tip(tip, action: str):
    store = _svc("store")
    user_id = st.session_state.user_id
    store.log_card_interaction({
        "user_id": user_id,
        "card_type": tip.category,
        "card_content": {"id": tip.id, "title": tip.title},
        "action_taken": action,
    })
    if action == "accept":
        saving = savings_for_action(CATEGORY_ACTION.get(tip.category, "default"))
        store.add_points(user_id, 10, carbon_saved=saving["carbon"], money_saved=saving["money"])
    st.session_state.handled_tips.add(tip.id)


def _accept_tip(tip):
    _on_tip(tip, "accept")


def _skip_tip(tip):
    _on_tip(tip, "reject")


def _carbon_section(profile: OnboardingData, fp):
    locale = locale_for(profile.postcode)
    monthly = fp.savings.monthly_money
    if locale == "US":
        monthly = convert_currency(monthly, "UK", "US")
    metric_grid([
        ("Your footprint", f"{fp.total:.1f} t CO₂/yr"),
        ("Grade", fp.grade),
        ("vs national average", f"{fp.total - NATIONAL_AVERAGE_T:+.1f} t"),
        ("Potential saving", format_currency(monthly, locale) + "/month"),
    ], per_row=4)

    breakdown = pd.DataFrame(
        {"Category": [k.title() for k in fp.breakdown], "Tonnes CO₂": list(fp.breakdown.values())}
    )
    c1, c2 = st.columns(2)
    with c1:
        fig = px.pie(breakdown, names="Category", values="Tonnes CO₂", hole=0.5, title="Where it comes from")
        st.plotly_chart(fig, width="stretch")
    with c2:
        comp = fp.comparisons
        rings = pd.DataFrame({
            "Benchmark": ["You", "World", "Country", "Region"],
            "Tonnes CO₂": [fp.total, comp.world_average, comp.country_average, comp.region_average],
        })
        fig = px.bar(rings, x="Benchmark", y="Tonnes CO₂", title="How you compare", text_auto=".1f")
        st.plotly_chart(fig, width="stretch")

    animal = fp.comparisons.animal_equivalent
    callout(
        f"{animal.emoji} That's about {animal.count:g} {animal.animal}{'s' if animal.count != 1 else ''}",
        "Your yearly emissions, weighed in wildlife.",
    )
    if fp.savings.actions:
        with st.expander("How your goals cut it down", expanded=False):
            bullet_list(fp.savings.actions)
            st.caption(f"Up to {fp.savings.potential:.2f} t CO₂ a year.")


def _tips_section(profile: OnboardingData, fp):
    generator: TipGenerator = _svc("tips")
    if st.session_state.tips is None:
        with st.spinner("Zai is thinking up tips for you…"):
            st.session_state.tips = generator.generate(profile, fp, st.session_state.location)

    st.caption("Personalised by Zai" if generator.last_source == "openai" else "Starter tips (AI offline)")
    pending = [t for t in st.session_state.tips if t.id not in st.session_state.handled_tips]
    if not pending:
        empty_state("You've worked through all your tips. Check back tomorrow for more.")
        if st.button("refresh tips", key="tips_refresh"):
            st.session_state.tips = None
            st.session_state.handled_tips = set()
            st.rerun()
        return
    cols = st.columns(2)
    for i, tip in enumerate(pending):
        with cols[i % 2]:
            tip_card(tip, on_accept=_accept_tip, on_skip=_skip_tip)


def _local_section():
    connectors: DataConnectors = _svc("connectors")
    location = st.session_state.location
    st.caption(f"{location.city}, {location.country} · sustainability score {location.sustainability_score:.0f}/100")

    aq = connectors.air_quality(location)
    c1, c2 = st.columns([1, 2])
    with c1:
        st.metric("Air quality index", aq["aqi"], help=aq["level"])
    with c2:
        bullet_list(aq["recommendations"])

    if st.session_state.businesses is None:
        st.session_state.businesses = connectors.local_businesses(location)
    if st.session_state.businesses:
        df = pd.DataFrame(st.session_state.businesses)
        st.dataframe(df[["name", "category", "sustainability", "savings", "address"]], width="stretch", hide_index=True)
        st.map(df.rename(columns={"lng": "lon"})[["lat", "lon"]])


def _partners_section():
    cols = st.columns(3)
    for col, offer in zip(cols, partner_offers()):
        with col:
            offer_card(offer)


def page_dashboard():
    profile: OnboardingData | None = st.session_state.profile
    if profile is None:
        empty_state("Tell us a bit about yourself first.", "start onboarding", lambda: _set_page("onboarding"), key="dash_start")
        return

    st.title(f"Hi {profile.name} 👋")
    if st.session_state.daily_tip is None:
        st.session_state.daily_tip = _svc("zai").daily_tip(profile)
    st.caption(st.session_state.daily_tip)

    try:
        fp = _footprint()
    except ConfigurationError as e:
        log.error("Footprint calculation failed: %s", e)
        st.error(f"We couldn't calculate your footprint: {e}")
        return

    tab_carbon, tab_tips, tab_local, tab_partners = st.tabs(["Carbon", "Tips", "Local", "Partners"])
    with tab_carbon:
        _carbon_section(profile, fp)
    with tab_tips:
        _tips_section(profile, fp)
    with tab_local:
        _local_section()
    with tab_partners:
        _partners_section()

    with st.expander("Quick facts", expanded=False):
        bullet_list(carbon_quicktips())
        for name, url in useful_links(locale_for(profile.postcode)).items():
            st.markdown(f"- [{name}]({url})")


# ---------------------------------
# Chat
# ---------------------------------

def page_chat():
    profile: OnboardingData | None = st.session_state.profile
    if profile is None:
        empty_state("Finish onboarding so Zai knows who you are.")
        return

    zai: ZaiChat = _svc("zai")
    st.title("Chat with Zai")
    st.caption(zai.connection_status()["message"])

    if st.session_state.chat is None:
        session = ChatSession(zai, profile)
        session.start()
        st.session_state.chat = session
    session: ChatSession = st.session_state.chat

    for msg in session.messages:
        with st.chat_message(msg.role):
            st.markdown(msg.content)

    prompt = st.chat_input("Ask about saving money or carbon…", disabled=session.is_loading)
    if prompt:
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.spinner("Zai is typing…"):
            reply = session.send(prompt)
        if reply is not None:
            with st.chat_message("assistant"):
                st.markdown(reply.content)
            _svc("store").save_conversation(st.session_state.user_id, session.conversation_id, session.transcript())


# ---------------------------------
# Water quality
# ---------------------------------

def page_water():
    st.title("Water quality")
    st.caption("Recent measurements from the US Water Quality Portal. Demo data is shown when the portal is unreachable.")

    client: WaterQualityClient = _svc("water")
    location = st.session_state.location
    scope = st.radio(
        "Search",
        ["By state", "Near my postcode"] if location is not None else ["By state"],
        horizontal=True,
        key="wq_scope",
    )
    c1, c2, c3 = st.columns(3)
    with c1:
        if scope == "By state":
            state = st.selectbox("State", list(US_STATE_CODES), index=list(US_STATE_CODES).index("California"), key="wq_state")
        else:
            radius = st.slider("Radius (miles)", 5, 100, 25, key="wq_radius")
    with c2:
        characteristic = st.selectbox("Measurement", CHARACTERISTICS, key="wq_char")
    with c3:
        days = st.slider("Days back", 7, 365, 30, key="wq_days")

    if not st.button("fetch", type="primary", key="wq_fetch"):
        return

    with st.spinner("Fetching water data…"):
        if scope == "By state":
            df = client.recent(US_STATE_CODES[state], characteristic, days_back=days)
        else:
            df = client.by_location(location.lat, location.lng, radius, characteristic=characteristic, days_back=days)

    if df.attrs.get("source") == "mock":
        st.warning(client.last_error or "Showing demo data.")
    if df.empty:
        empty_state("No samples matched. Try a wider radius or another measurement.")
        return

    stats = statistics(df)
    if stats:
        metric_grid([
            ("Samples", str(stats["count"])),
            ("Mean", f"{stats['mean']:.3f}"),
            ("Median", f"{stats['median']:.3f}"),
            ("Std dev", f"{stats['std']:.3f}"),
        ], per_row=4)
    st.dataframe(df, width="stretch", hide_index=True)

    counts = df["rating"].value_counts().rename_axis("rating").reset_index(name="samples")
    fig = px.bar(
        counts, x="rating", y="samples", color="rating",
        color_discrete_map={r: rating_info(r)["color"] for r in counts["rating"]},
        title="Ratings",
    )
    st.plotly_chart(fig, width="stretch")


# ---------------------------------
# Settings
# ---------------------------------

def page_settings():
    st.title("Settings")
    settings: Settings = st.session_state.settings

    st.subheader("Connections")
    status = pd.DataFrame(
        [{"service": k.replace("_", " "), "mode": v} for k, v in settings.status().items()]
    )
    st.dataframe(status, width="stretch", hide_index=True)
    st.caption(_svc("store").status()["message"])
    st.caption(_svc("zai").connection_status()["message"])

    st.subheader("Your data")
    if st.session_state.profile is not None:
        st.json(st.session_state.profile.to_dict())
        interactions = _svc("store").get_card_interactions(st.session_state.user_id, limit=20)
        if interactions:
            st.dataframe(pd.DataFrame(interactions), width="stretch", hide_index=True)

    if st.button("reset everything", type="secondary", key="settings_reset"):
        for key in ("profile", "location", "footprint", "tips", "chat", "daily_tip", "businesses"):
            st.session_state[key] = None
        st.session_state.handled_tips = set()
        st.session_state.flow = OnboardingFlow()
        st.session_state.user_id = f"user_{uuid.uuid4().hex[:12]}"
        _set_page("onboarding")
        st.rerun()


# ---------------------------------
# Helpers
# ---------------------------------

def _set_page(name: str):
    st.session_state.page = name
    st.session_state.nav_sync = name


def _route():
    page = st.session_state.page
    if page == "onboarding":
        page_onboarding()
    elif page == "dashboard":
        page_dashboard()
    elif page == "chat":
        page_chat()
    elif page == "water":
        page_water()
    elif page == "settings":
        page_settings()


# ---------------------------------
# Entry
# ---------------------------------

def main():
    st.set_page_config(page_title="Zero Zero", page_icon="🌱", layout="wide")
    _init_state()
    sidebar_nav()
    _route()


if __name__ == "__main__":
    main()
