"""
ADU Feasibility Engine - Streamlit front end.

Address form plus optional lot and house dimensions, and a report preview.
Run with: streamlit run app.py
"""

import streamlit as st

from core import AddressNotFound, GeometryInput
from core.feasibility import get_feasibility_engine
from core.report import yes_no

st.set_page_config(
    page_title="ADU Feasibility",
    page_icon="🏠",
    layout="centered",
)

st.title("🏠 ADU Feasibility Test")
st.markdown("Check whether an accessory dwelling unit can be built on a property.")

# ═══════════════════════════════════════════════════════════════════════════
# INPUT FORM
# ═══════════════════════════════════════════════════════════════════════════
with st.form("feasibility_form"):
    address = st.text_input("Property Address", placeholder="123 Main St, Hamilton, ON")

    with st.expander("Lot and house dimensions (feet, optional)"):
        col1, col2 = st.columns(2)
        with col1:
            lot_width = st.number_input("Lot width", min_value=0.0, value=0.0, step=1.0)
            house_width = st.number_input("House width", min_value=0.0, value=0.0, step=1.0)
        with col2:
            lot_depth = st.number_input("Lot depth", min_value=0.0, value=0.0, step=1.0)
            house_depth = st.number_input("House depth", min_value=0.0, value=0.0, step=1.0)

    submitted = st.form_submit_button("Run Feasibility Test")

# ═══════════════════════════════════════════════════════════════════════════
# REPORT PREVIEW
# ═══════════════════════════════════════════════════════════════════════════
if submitted:
    geometry = None
    if lot_width > 0 and lot_depth > 0:
        geometry = GeometryInput(
            lot_width=lot_width,
            lot_depth=lot_depth,
            house_width=house_width or None,
            house_depth=house_depth or None,
        )

    try:
        with st.spinner("Querying zoning, utility and overlay layers..."):
            report = get_feasibility_engine().generate_feasibility_report(
                address or "123 Main St, Hamilton, ON", geometry
            )
    except AddressNotFound as e:
        st.error(f"❌ {e}")
        st.stop()

    verdict = report.verdict
    st.header("Feasibility Report")
    if report.is_fallback:
        st.warning("⚠️ Fallback report: every data source failed, values are estimated.")

    if verdict.allowed:
        st.success(f"✅ {verdict.reason}")
    else:
        st.error(f"❌ {verdict.reason}")

    col1, col2, col3 = st.columns(3)
    col1.metric("Confidence", report.confidence.value)
    col2.metric("Max ADU", f"{verdict.max_buildable_area:.0f} sq ft"
                if verdict.max_buildable_area is not None else "n/a")
    col3.metric("Incentive", "Eligible" if report.incentive_eligible else "No")

    st.write(f"**Address:** {report.address}")
    st.write(f"**Zoning:** {report.zoning.category_label}")
    st.write(f"**Heritage Status:** {yes_no(report.overlays.heritage_designated)}")
    st.write(f"**Greenbelt Area:** {yes_no(report.overlays.in_greenbelt)}")
    st.write(f"**Soil Type:** {report.overlays.soil_type or 'Unknown'}")
    st.write(f"**Required setbacks:** rear {verdict.required_setbacks.rear:.0f} ft, "
             f"side {verdict.required_setbacks.side:.0f} ft")

    for warning in report.warnings:
        st.caption(f"⚠️ {warning}")

    with st.expander("Rule trace"):
        for line in verdict.trace:
            st.text(line)

    st.info(report.summary)
