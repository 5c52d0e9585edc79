"""Solar Symmetry — Streamlit app for mirror dates and twilight times."""

import asyncio
import html
import json
import logging
from datetime import date, timedelta

import streamlit as st
from dotenv import load_dotenv
from streamlit_js_eval import get_geolocation, streamlit_js_eval

load_dotenv()

from solarsymmetry.after_work import light_after_work  # noqa: E402
from solarsymmetry.config import APP_VERSION, load_config  # noqa: E402
from solarsymmetry.dates import (  # noqa: E402
    can_go_to_next_month,
    can_go_to_previous_month,
    format_day,
    format_month_year,
    next_month,
    previous_month,
)
from solarsymmetry.geocoding import (  # noqa: E402
    GeocodingError,
    reverse_geocode,
    search_locations,
)
from solarsymmetry.i18n import t  # noqa: E402
from solarsymmetry.models import LocationPoint, MonthDataset, MonthRequest, ViewMode  # noqa: E402
from solarsymmetry.pipeline import MonthPipeline  # noqa: E402
from solarsymmetry.renderers.cards import render_month_html  # noqa: E402
from solarsymmetry.renderers.plotly_daylight import render_daylight_chart  # noqa: E402
from solarsymmetry.storage import STORAGE_KEYS, dump_location, load_location  # noqa: E402
from solarsymmetry.twilight import TwilightCache, TwilightClient  # noqa: E402

_config = load_config()
logging.basicConfig(
    level=_config.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("solarsymmetry.app")

# --- Language detection (browser-first via streamlit-js-eval) ---
# On the first run the JS call returns None; the rerun it triggers fills it in.
if "lang" not in st.session_state:
    _browser_lang: str | None = streamlit_js_eval(
        js_expressions="navigator.language", key="_lang_detect", height=0
    )
    if _browser_lang is not None:
        st.session_state.lang = "fr" if _browser_lang.lower().startswith("fr") else "en"

_lang: str = st.session_state.get("lang", "en")

st.set_page_config(
    page_title=t("page_title", _lang),
    page_icon="☀",
    layout="wide",
    initial_sidebar_state="collapsed",
)


@st.cache_resource
def _twilight_client() -> TwilightClient:
    """One client (and one 24h cache) shared by every session of this server."""
    return TwilightClient(
        base_url=_config.twilight_url,
        cache=TwilightCache(max_age=timedelta(hours=_config.cache_hours)),
        timeout=_config.request_timeout,
        user_agent=_config.user_agent,
    )


# --- Session state initialization ---

_today = date.today()

if "view" not in st.session_state:
    st.session_state.view = ViewMode.SYMMETRY
if "year" not in st.session_state:
    st.session_state.year = _today.year
if "month" not in st.session_state:
    st.session_state.month = _today.month
if "location" not in st.session_state:
    st.session_state.location = None
if "city1" not in st.session_state:
    st.session_state.city1 = None
if "city2" not in st.session_state:
    st.session_state.city2 = None
if "results" not in st.session_state:
    st.session_state.results = {role: [] for role in STORAGE_KEYS}
if "golden_hour" not in st.session_state:
    st.session_state.golden_hour = False
if "error_msg" not in st.session_state:
    st.session_state.error_msg = None
if "storage_loaded" not in st.session_state:
    st.session_state.storage_loaded = set()
if "pending_saves" not in st.session_state:
    st.session_state.pending_saves = []
if "save_seq" not in st.session_state:
    st.session_state.save_seq = 0
if "locate_requested" not in st.session_state:
    st.session_state.locate_requested = False
if "dataset" not in st.session_state:
    st.session_state.dataset = None
if "after_work" not in st.session_state:
    st.session_state.after_work = None
if "pipeline" not in st.session_state:
    st.session_state.pipeline = MonthPipeline(
        _twilight_client().get_twilight_times,
        render=lambda _: None,
        options=_config.pipeline_options(),
    )

# --- Dark theme CSS (static) ---
st.markdown(
    """
    <style>
    /* Hide streamlit_js_eval invisible iframes */
    iframe[src*="streamlit_js_eval"] { display: none !important; }
    html, body, [data-testid="stAppViewContainer"], [data-testid="stMain"] {
        background-color: #0d1b35 !important;
    }
    [data-testid="stHeader"], [data-testid="stToolbar"] {
        display: none !important;
    }
    /* Input fields */
    [data-testid="stTextInput"] input {
        background-color: #ffffff !important;
        color: #111111 !important;
        border: 1px solid rgba(255,255,255,0.3) !important;
        border-radius: 6px !important;
    }
    /* Buttons */
    [data-testid="stButton"] button {
        background-color: rgba(126, 200, 227, 0.2) !important;
        color: #7ec8e3 !important;
        border: 1px solid #7ec8e3 !important;
        border-radius: 6px !important;
        font-weight: 600;
    }
    [data-testid="stButton"] button:hover {
        background-color: rgba(126, 200, 227, 0.35) !important;
    }
    [data-testid="stButton"] button:disabled {
        opacity: 0.35;
    }
    /* Labels */
    label, [data-testid="stWidgetLabel"] p {
        color: #aaaaaa !important;
        font-size: 0.85rem !important;
    }
    h1, h3 { color: #e8d5a3 !important; }
    .overlay-box {
        border-radius: 8px;
        padding: 0.8rem 1.2rem;
        margin-bottom: 0.6rem;
    }
    .law-card {
        border: 1px solid rgba(201,169,110,0.35);
        border-radius: 10px;
        padding: 0.9rem 1.2rem;
        color: #e8d5a3;
        margin-bottom: 1rem;
    }
    .law-card.has-light { border-color: #c9a96e; background: rgba(201,169,110,0.08); }
    .law-card .law-title { font-weight: 700; font-size: 1.05rem; }
    .law-card .law-countdown { font-size: 1.6rem; color: #c9a96e; }
    </style>
    """,
    unsafe_allow_html=True,
)


def _signature(request: MonthRequest) -> tuple:
    return (
        request.year,
        request.month,
        request.mode,
        tuple(loc.key for loc in request.locations),
    )


def _select(role: str, location: LocationPoint) -> None:
    st.session_state[role] = location
    st.session_state.results[role] = []
    st.session_state.pending_saves.append((role, dump_location(location)))
    st.session_state.error_msg = None


def _clear(role: str) -> None:
    st.session_state[role] = None
    st.session_state.results[role] = []
    st.session_state.pending_saves.append((role, None))


# --- Restore saved locations from localStorage ---
# Wrapped in JSON so "not evaluated yet" (None) differs from "nothing stored".
for _role, _storage_key in STORAGE_KEYS.items():
    if _role in st.session_state.storage_loaded:
        continue
    _raw = streamlit_js_eval(
        js_expressions=f"JSON.stringify({{v: localStorage.getItem({json.dumps(_storage_key)})}})",
        key=f"_load_{_role}",
    )
    if _raw is None:
        continue
    st.session_state.storage_loaded.add(_role)
    _saved = load_location(json.loads(_raw).get("v"))
    if _saved is not None and st.session_state[_role] is None:
        st.session_state[_role] = _saved

# --- Flush pending localStorage writes ---
for _role, _payload in st.session_state.pending_saves:
    st.session_state.save_seq += 1
    _storage_key = json.dumps(STORAGE_KEYS[_role])
    _js = (
        f"localStorage.setItem({_storage_key}, {json.dumps(_payload)})"
        if _payload is not None
        else f"localStorage.removeItem({_storage_key})"
    )
    streamlit_js_eval(js_expressions=_js, key=f"_save_{st.session_state.save_seq}")
st.session_state.pending_saves = []

# --- Browser geolocation → reverse geocode ---
if st.session_state.locate_requested:
    _geo = get_geolocation()
    if _geo is not None:
        st.session_state.locate_requested = False
        _coords = _geo.get("coords") if isinstance(_geo, dict) else None
        if _coords:
            _lat, _lng = float(_coords["latitude"]), float(_coords["longitude"])
            _name = reverse_geocode(
                _lat,
                _lng,
                base_url=_config.nominatim_url,
                user_agent=_config.user_agent,
                timeout=_config.request_timeout,
            )
            _select("location", LocationPoint(lat=_lat, lng=_lng, name=_name))
        else:
            logger.warning("Geolocation unavailable: %s", _geo)

# --- Header ---
_title_col, _version_col = st.columns([5, 1])
with _title_col:
    st.markdown(f"# {t('page_title', _lang)}")
with _version_col:
    st.caption(f"v{APP_VERSION}")

_view_labels = {
    ViewMode.SYMMETRY: t("view_symmetry", _lang),
    ViewMode.CITIES: t("view_cities", _lang),
}
_view = st.radio(
    "view",
    options=list(_view_labels),
    format_func=_view_labels.get,
    index=list(_view_labels).index(st.session_state.view),
    horizontal=True,
    label_visibility="collapsed",
)
if _view is not st.session_state.view:
    st.session_state.view = _view
    st.rerun()


def _location_picker(role: str, label_key: str, allow_locate: bool = False) -> None:
    current: LocationPoint | None = st.session_state[role]
    cols = st.columns([4, 1, 1, 1.4] if allow_locate else [4, 1, 1])
    with cols[0]:
        query = st.text_input(t(label_key, _lang), key=f"query_{role}")
    with cols[1]:
        st.markdown("<div style='height:1.9rem'></div>", unsafe_allow_html=True)
        if st.button(t("btn_search", _lang), key=f"search_{role}", use_container_width=True):
            try:
                matches = search_locations(
                    query,
                    base_url=_config.nominatim_url,
                    user_agent=_config.user_agent,
                    timeout=_config.request_timeout,
                )
                st.session_state.results[role] = matches
                st.session_state.error_msg = None if matches else t("no_results", _lang)
            except GeocodingError as e:
                st.session_state.error_msg = t("error_search", _lang).format(
                    error=html.escape(str(e))
                )
    with cols[2]:
        st.markdown("<div style='height:1.9rem'></div>", unsafe_allow_html=True)
        if st.button(
            t("btn_clear", _lang),
            key=f"clear_{role}",
            disabled=current is None,
            use_container_width=True,
        ):
            _clear(role)
            st.rerun()
    if allow_locate:
        with cols[3]:
            st.markdown("<div style='height:1.9rem'></div>", unsafe_allow_html=True)
            if st.button(t("btn_my_location", _lang), key=f"locate_{role}", use_container_width=True):
                st.session_state.locate_requested = True
                st.rerun()

    if current is not None:
        st.caption(f"📍 {current.name}")

    matches = st.session_state.results[role]
    if matches:
        choice = st.radio(
            t("label_results", _lang),
            options=range(len(matches)),
            format_func=lambda i: matches[i].name,
            index=None,
            key=f"pick_{role}",
        )
        if choice is not None:
            _select(role, matches[choice])
            st.rerun()


# --- Location selectors ---
if st.session_state.view is ViewMode.SYMMETRY:
    _location_picker("location", "label_location", allow_locate=True)
    _locations = [st.session_state.location] if st.session_state.location else []
else:
    _c1, _c2 = st.columns(2)
    with _c1:
        _location_picker("city1", "label_city1")
    with _c2:
        _location_picker("city2", "label_city2")
    _locations = (
        [st.session_state.city1, st.session_state.city2]
        if st.session_state.city1 and st.session_state.city2
        else []
    )

# --- Error message ---
if st.session_state.error_msg:
    st.markdown(
        f"<div class='overlay-box' style='border:1px solid #ff6b6b; color:#ff9999;'>"
        f"{st.session_state.error_msg}</div>",
        unsafe_allow_html=True,
    )

# --- Light after work card (symmetry view) ---
if st.session_state.view is ViewMode.SYMMETRY and st.session_state.location:
    _loc: LocationPoint = st.session_state.location
    _law_key = (_loc.key, _today)
    if st.session_state.after_work is None or st.session_state.after_work[0] != _law_key:
        _law = asyncio.run(light_after_work(_twilight_client().get_twilight_times, _loc, _today))
        st.session_state.after_work = (_law_key, _law)
    _law = st.session_state.after_work[1]
    if _law is not None:
        if _law.has_light_now:
            _law_html = (
                f"<div class='law-card has-light'><div class='law-title'>{t('law_title_now', _lang)}</div>"
                f"<div>{t('law_message_now', _lang).format(sunset=_law.sunset)}</div>"
                f"<div class='law-countdown'>{t('law_countdown_now', _lang)}</div></div>"
            )
        else:
            _law_html = (
                f"<div class='law-card'><div class='law-title'>{t('law_title_later', _lang)}</div>"
                f"<div>{t('law_message_later', _lang).format(day=format_day(_law.target_date))}</div>"
                f"<div class='law-countdown'>{t('law_countdown_later', _lang).format(days=_law.days_until)}</div></div>"
            )
        st.markdown(_law_html, unsafe_allow_html=True)

# --- Month navigation ---
_policy = st.session_state.pipeline.options.navigation
_prev_col, _label_col, _next_col, _gold_col = st.columns([1, 3, 1, 1.4])
with _prev_col:
    if st.button(
        t("btn_prev", _lang),
        disabled=not can_go_to_previous_month(st.session_state.month, _policy),
        use_container_width=True,
    ):
        st.session_state.year, st.session_state.month = previous_month(
            st.session_state.year, st.session_state.month
        )
        st.rerun()
with _label_col:
    st.markdown(
        f"<h3 style='text-align:center; margin:0'>"
        f"{format_month_year(st.session_state.year, st.session_state.month)}</h3>",
        unsafe_allow_html=True,
    )
with _next_col:
    if st.button(
        t("btn_next", _lang),
        disabled=not can_go_to_next_month(st.session_state.month, _policy),
        use_container_width=True,
    ):
        st.session_state.year, st.session_state.month = next_month(
            st.session_state.year, st.session_state.month
        )
        st.rerun()
with _gold_col:
    st.toggle(t("toggle_golden_hour", _lang), key="golden_hour")

# --- Month data (progressive) ---
chart_placeholder = st.empty()
notice_placeholder = st.empty()
month_placeholder = st.empty()


def _render(dataset: MonthDataset) -> None:
    month_placeholder.markdown(
        render_month_html(dataset, lang=_lang, show_golden_hour=st.session_state.golden_hour),
        unsafe_allow_html=True,
    )
    if not dataset.settled:
        return
    # Charted once per run, after the last chunk.
    chart_placeholder.plotly_chart(
        render_daylight_chart(dataset),
        use_container_width=True,
        config={"displayModeBar": False},
    )
    if _has_errors(dataset):
        notice_placeholder.caption(t("error_partial", _lang))
    if not dataset.failed:
        st.session_state.dataset = dataset


def _has_errors(dataset: MonthDataset) -> bool:
    for row in dataset.rows:
        if dataset.request.mode is ViewMode.SYMMETRY:
            records = (row.current_twilight, row.mirrored_twilight)
        else:
            records = (row.city1_twilight, row.city2_twilight)
        if any(r is not None and not r.available for r in records):
            return True
    return dataset.failed


if _locations:
    _pipeline: MonthPipeline = st.session_state.pipeline
    _pipeline.render = _render
    _request = _pipeline.begin(
        st.session_state.year,
        st.session_state.month,
        st.session_state.view,
        _locations,
    )
    _cached: MonthDataset | None = st.session_state.dataset
    if _cached is not None and _signature(_cached.request) == _signature(_request):
        # Same month and places (e.g. golden hour toggled): repaint without refetching.
        _render(_cached)
    else:
        asyncio.run(_pipeline.run(_request))
else:
    _placeholder_key = (
        "placeholder_symmetry"
        if st.session_state.view is ViewMode.SYMMETRY
        else "placeholder_cities"
    )
    month_placeholder.markdown(
        f"<div style='height:40vh; display:flex; align-items:center; justify-content:center;"
        f" color:#334466; font-size:1.2rem;'>{t(_placeholder_key, _lang)}</div>",
        unsafe_allow_html=True,
    )
