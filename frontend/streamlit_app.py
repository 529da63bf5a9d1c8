"""
Air Quality Dashboard - Streamlit Frontend
Sensor history downloads and the Texas AOD contour map, using Streamlit + Plotly + Folium

Run: streamlit run streamlit_app.py
Open: http://localhost:8501
Note: Make sure FastAPI backend is running on port 8000
"""

from datetime import datetime, time, timedelta, timezone

import streamlit as st
import folium
import plotly.graph_objects as go
from streamlit_folium import st_folium
import requests
import os

# Configuration - Use environment variable for Docker, fallback to localhost for local dev
API_URL = os.getenv("API_URL", "http://localhost:8000")

# Fields the PurpleAir history endpoint accepts that people actually ask for
PURPLEAIR_FIELDS = [
    "pm1.0_atm", "pm2.5_atm", "pm10.0_atm",
    "pm2.5_alt", "pm2.5_cf_1",
    "humidity", "temperature", "pressure",
    "voc", "ozone1",
    "0.3_um_count", "0.5_um_count", "1.0_um_count", "2.5_um_count"
]

# Contour styling: AOD 0 -> 0.5, blue through red
AOD_COLORSCALE = [
    [0, "blue"], [0.1, "cyan"], [0.2, "green"],
    [0.3, "yellow"], [0.4, "orange"], [0.5, "red"], [1, "red"]
]
AOD_MAX = 0.5
AOD_STEP = 0.02

# Page config
st.set_page_config(
    page_title="Air Quality Dashboard",
    page_icon="🌫️",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
<style>
    .stApp { background-color: #0f172a; }
    .main .block-container { padding: 0.5rem 1rem; max-width: 100%; }
    [data-testid="stSidebar"] { background-color: #1e293b; }
    .stMetric { background-color: #1e293b; padding: 0.75rem; border-radius: 8px; }
    .stMetric label { color: #94a3b8 !important; font-size: 0.85rem !important; }
    .stMetric [data-testid="stMetricValue"] { color: #22c55e !important; font-size: 1.5rem !important; }
    h1, h2, h3, h4 { color: #f1f5f9 !important; }
    p, span, label { color: #e2e8f0; }
    .result-title { color: #60a5fa; font-size: 1rem; font-weight: 600; margin-bottom: 0.5rem; }
    .info-box { background-color: #1e3a5f; border-left: 4px solid #3b82f6; padding: 0.75rem; border-radius: 0 8px 8px 0; color: #e2e8f0; }
    [data-testid="stSidebarContent"] { padding: 1rem; }
</style>
""", unsafe_allow_html=True)


def request_history(payload: dict) -> dict:
    """Ask the API to pull sensor history from PurpleAir."""
    try:
        response = requests.post(f"{API_URL}/sensor-history/download", json=payload, timeout=90)
        return response.json()
    except Exception as e:
        return {"error": str(e)}


@st.cache_data(ttl=600)
def fetch_contour() -> dict:
    """Get the interpolated AOD grid."""
    try:
        response = requests.get(f"{API_URL}/aod/contour", timeout=60)
        return response.json()
    except Exception as e:
        return {"error": str(e)}


@st.cache_data(ttl=600)
def fetch_points() -> dict:
    """Raw AOD points for the map overlay."""
    try:
        response = requests.get(f"{API_URL}/aod/points", params={"limit": 2000}, timeout=30)
        return response.json()
    except Exception as e:
        return {"error": str(e)}


def to_iso(day, clock) -> str:
    return datetime.combine(day, clock, tzinfo=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def create_contour_figure(result: dict) -> go.Figure:
    """Filled contour of the AOD grid. Nulls render as gaps."""
    region = result["region"]

    fig = go.Figure(go.Contour(
        x=result["lons"],
        y=result["lats"],
        z=result["values"],
        colorscale=AOD_COLORSCALE,
        zmin=0,
        zmax=AOD_MAX,
        contours=dict(
            coloring="heatmap",
            showlines=True,
            start=0,
            end=AOD_MAX,
            size=AOD_STEP,
            showlabels=True,
            labelfont=dict(size=10, color="white")
        ),
        colorbar=dict(title=dict(text="AOD", side="right"), tickmode="linear", tick0=0, dtick=0.1)
    ))

    fig.update_layout(
        title=dict(text="AOD Contour Map - Texas", font=dict(size=24)),
        xaxis=dict(title="Longitude (°)", range=[region["min_lon"], region["max_lon"]],
                   showgrid=True, gridcolor="rgba(128, 128, 128, 0.2)"),
        yaxis=dict(title="Latitude (°)", range=[region["min_lat"], region["max_lat"]],
                   showgrid=True, gridcolor="rgba(128, 128, 128, 0.2)"),
        height=800,
        margin=dict(l=80, r=60, t=80, b=80)
    )
    return fig


def create_map_points(region: dict, points: list) -> folium.Map:
    """Map of the region outline with every AOD point on it."""
    center = [(region["min_lat"] + region["max_lat"]) / 2, (region["min_lon"] + region["max_lon"]) / 2]
    m = folium.Map(location=center, zoom_start=6, tiles="CartoDB dark_matter")

    folium.Rectangle(
        bounds=[[region["min_lat"], region["min_lon"]], [region["max_lat"], region["max_lon"]]],
        color="#22c55e", fill=False, weight=2
    ).add_to(m)

    for p in points:
        folium.CircleMarker(
            location=[p["latitude"], p["longitude"]],
            radius=3, color="#60a5fa", fill=True, fill_opacity=0.8,
            tooltip=f"AOD: {p['value']:.3f}"
        ).add_to(m)

    return m


def download_page():
    st.subheader("⬇️ Download Sensor Data")
    st.markdown('<div class="info-box">Pulls raw history for one PurpleAir sensor. Your API key is only forwarded to PurpleAir.</div>', unsafe_allow_html=True)

    with st.form("history_form"):
        col_a, col_b = st.columns(2)
        with col_a:
            sensor_index = st.number_input("Sensor Index", min_value=1, value=None, step=1, format="%d")
        with col_b:
            api_key = st.text_input("PurpleAir API Key", type="password")

        now = datetime.now(timezone.utc)
        col_start, col_end = st.columns(2)
        with col_start:
            start_day = st.date_input("Start date", value=(now - timedelta(days=1)).date())
            start_clock = st.time_input("Start time (UTC)", value=time(0, 0))
        with col_end:
            end_day = st.date_input("End date", value=now.date())
            end_clock = st.time_input("End time (UTC)", value=time(0, 0))

        fields = st.multiselect("Fields", options=PURPLEAIR_FIELDS, default=["pm2.5_atm", "humidity", "temperature"])
        submitted = st.form_submit_button("📥 Fetch Data", use_container_width=True, type="primary")

    if submitted:
        payload = {
            "sensor_index": int(sensor_index) if sensor_index else None,
            "api_key": api_key,
            "start_timestamp": to_iso(start_day, start_clock),
            "end_timestamp": to_iso(end_day, end_clock),
            "fields": fields
        }
        with st.spinner("Fetching from PurpleAir..."):
            st.session_state.history_result = request_history(payload)

    result = st.session_state.get("history_result")
    if result:
        display_history_result(result)


def display_history_result(result: dict):
    """Show download buttons and a preview of the rows."""
    if "error" in result or "detail" in result:
        st.error(f"❌ {result.get('error') or result.get('detail', 'Unknown')}")
        return

    st.markdown('<div class="result-title">📄 Result</div>', unsafe_allow_html=True)
    st.metric("Data Points", f"{result.get('data_points', 0):,}")

    filename = result["filename"]
    col_json, col_csv = st.columns(2)
    with col_json:
        st.download_button("Download JSON", data=result["json_content"], file_name=filename,
                           mime="application/json", use_container_width=True)
    with col_csv:
        st.download_button("Download CSV", data=result["csv_content"], file_name=filename.replace(".json", ".csv"),
                           mime="text/csv", use_container_width=True)

    data = result.get("data", {})
    rows = data.get("data") or []
    if rows:
        st.caption("First 20 rows")
        st.dataframe([dict(zip(data.get("fields", []), row)) for row in rows[:20]], use_container_width=True)
    else:
        st.warning("⚠️ No data in that time window")


def contour_page():
    st.subheader("🌫️ Aerosol Optical Depth")

    with st.spinner("Interpolating..."):
        result = fetch_contour()

    if "error" in result or "detail" in result:
        st.error(f"❌ {result.get('error') or result.get('detail', 'Unknown')}")
        return

    if result.get("empty"):
        st.warning("⚠️ No data points found for Texas region.")
        return

    col_plot, col_result = st.columns([3, 1])

    with col_plot:
        st.plotly_chart(create_contour_figure(result), use_container_width=True)

    with col_result:
        st.markdown('<div class="result-title">📊 Summary</div>', unsafe_allow_html=True)
        st.metric("Data Points", f"{result['point_count']:,}")
        if result.get("max_value") is not None:
            st.metric("Max AOD", f"{result['max_value']:.3f}")
            st.metric("Min AOD", f"{result['min_value']:.3f}")
        st.caption(f"Grid {result['resolution'] + 1}×{result['resolution'] + 1} | radius {result['influence_radius']}°")

    points = fetch_points()
    if "points" in points:
        st.markdown("---")
        st.markdown('<div class="result-title">📍 Measurement Locations</div>', unsafe_allow_html=True)
        if points.get("truncated"):
            st.caption(f"Showing {len(points['points']):,} of {points['count']:,} points")
        st_folium(create_map_points(result["region"], points["points"]), width=None, height=500,
                  key="aod_points", returned_objects=[])


def main():
    # Sidebar
    with st.sidebar:
        st.title("🌫️ Air Quality Dashboard")
        st.markdown("---")

        mode = st.radio(
            "Select Page", options=["download", "contour"],
            format_func=lambda x: "⬇️ Download" if x == "download" else "🗺️ AOD Contour",
        )

        st.markdown("---")
        st.subheader("📖 Instructions")

        if mode == "download":
            st.info("Enter a sensor index, your API key, a time window and the fields you want.", icon="ℹ️")
        else:
            st.info("Grid values are inverse-distance weighted from nearby points. Blank areas have no data within the influence radius.", icon="ℹ️")

        st.markdown("---")
        st.markdown(f"[📚 API Docs]({API_URL}/docs)")

    if mode == "download":
        download_page()
    else:
        contour_page()


if __name__ == "__main__":
    main()
