import logging

import streamlit as st

from protein_quality.app_logging import configure_logging
from protein_quality.calculations import (
    STREAMLIT_COLORS,
    CalculationInputError,
    calculate_digestible_protein,
    create_calculation_record,
    format_percentage,
    format_protein_amount,
    get_digestibility_color,
    get_protein_quality_rating,
    parse_calculation_input,
)
from protein_quality.catalog import default_catalog
from protein_quality.config import load_settings
from protein_quality.education import TOPIC_DISPLAY_NAMES, cards_for
from protein_quality.history import calculation_statistics, filter_history, open_history_store
from protein_quality.history_io import HistoryImportError
from protein_quality.models import CATEGORIES, CATEGORY_DISPLAY_NAMES

settings = load_settings()
configure_logging(base_level=settings.log_level_number)
logger = logging.getLogger("protein_quality.app")

st.set_page_config(page_title="Protein Quality Calculator", page_icon="🥚", layout="centered")

catalog = default_catalog()
store = open_history_store(settings.history_path, limit=settings.history_limit)


def _score_line(source) -> str:
    if source.diaas_score is not None:
        return f"DIAAS {source.diaas_score:.2f}"
    if source.pdcaas_score is not None:
        return f"PDCAAS {source.pdcaas_score:.2f}"
    return "no score data"


st.sidebar.markdown("### History storage")
st.sidebar.code(str(settings.history_path.resolve()))
page = st.sidebar.radio("Page", ["Calculator", "History", "Learn"])

if page == "Calculator":
    st.title("Protein Quality Calculator")
    st.caption("Calculate quality-adjusted protein using DIAAS/PDCAAS scores")

    stated_text = st.text_input("Protein amount (g)", placeholder="Enter protein grams")
    dv_text = st.text_input("Daily Value % (optional)", placeholder="e.g., 25")
    st.caption("If provided, DV% will be used to calculate the protein amount")

    category = st.selectbox("Category", CATEGORIES, format_func=lambda c: CATEGORY_DISPLAY_NAMES[c])
    query = st.text_input("Search sources")
    options = catalog.search_sources(query, category)
    if not options:
        st.warning("No protein sources match this search")
    selected = st.selectbox(
        "Protein source",
        options,
        index=None,
        format_func=lambda s: f"{s.name} ({_score_line(s)})",
        placeholder="Select protein source",
    )

    calc_input = None
    error = None
    try:
        calc_input = parse_calculation_input(stated_text, dv_text, selected)
    except CalculationInputError as exc:
        error = str(exc)

    if st.button("Calculate Quality-Adjusted Protein", disabled=calc_input is None):
        result = calculate_digestible_protein(calc_input)
        store.append(create_calculation_record(calc_input, result))
        rating = get_protein_quality_rating(calc_input.protein_source)
        color = get_digestibility_color(result.protein_quality_percentage, STREAMLIT_COLORS)

        st.subheader("Results")
        c1, c2, c3 = st.columns(3)
        c1.metric("Quality-adjusted protein", format_protein_amount(result.quality_adjusted_protein))
        c2.metric(f"{result.calculation_method} score", f"{result.score_used:.2f}")
        c3.metric("Quality rating", rating.rating)
        st.markdown(f"Protein quality: :{color}[**{format_percentage(result.protein_quality_percentage)}**]")
        st.caption(f"Based on {result.calculation_method} score. {rating.description}.")
        if result.adjusted_protein is not None:
            st.write(f"DV% adjusted amount: **{format_protein_amount(result.adjusted_protein)}**")
        if result.dv_discrepancy is not None:
            st.warning(
                f"Note: stated protein differs from DV% by {format_protein_amount(result.dv_discrepancy)}"
            )
    elif error and stated_text.strip():
        st.caption(error)

if page == "History":
    st.header("Calculation History")
    records = store.list_records()

    c1, c2 = st.columns([1, 2])
    category = c1.selectbox("Category", CATEGORIES, format_func=lambda c: CATEGORY_DISPLAY_NAMES[c])
    query = c2.text_input("Search by source")
    shown = filter_history(records, category, query)

    if not records:
        st.info("No calculations yet. Your protein calculations will appear here.")
    for record in shown:
        color = get_digestibility_color(record.digestibility_percentage, STREAMLIT_COLORS)
        cols = st.columns([4, 1])
        cols[0].markdown(
            f"**{record.protein_source.name}** · {record.timestamp:%Y-%m-%d %H:%M}  \n"
            f"Stated: {format_protein_amount(record.stated_protein)} · "
            f"Quality-adjusted: {format_protein_amount(record.digestible_protein)} · "
            f":{color}[{format_percentage(record.digestibility_percentage)}] ({record.calculation_method})"
            + (f" · Daily Value: {format_percentage(record.dv_percentage)}" if record.dv_percentage else "")
        )
        if cols[1].button("Delete", key=f"delete_{record.id}"):
            store.delete_by_id(record.id)
            st.rerun()

    with st.expander("Statistics"):
        stats = calculation_statistics(records)
        s1, s2, s3 = st.columns(3)
        s1.metric("Total calculations", stats.total_calculations)
        s2.metric("Average stated protein", format_protein_amount(stats.average_stated_protein))
        s3.metric("Average quality-adjusted", format_protein_amount(stats.average_quality_adjusted_protein))
        for idx, (name, count) in enumerate(stats.most_used_sources, start=1):
            st.write(f"{idx}. {name}: {count} times")

    with st.expander("Export / import"):
        st.download_button(
            "Download history (JSON)",
            data=store.export_all(),
            file_name="protein_history.json",
            mime="application/json",
        )
        uploaded = st.file_uploader("Import history JSON", type=["json"])
        replace = st.checkbox("Replace existing history")
        if uploaded is not None and st.button("Import"):
            try:
                accepted = store.import_merge(uploaded.getvalue(), replace_existing=replace)
            except HistoryImportError as exc:
                logger.warning("History import rejected: %s", exc)
                st.error(f"Import failed: {exc}")
            else:
                st.success(f"Imported {accepted} calculations")

    if records and st.button("Clear history", type="primary"):
        store.clear()
        st.rerun()

if page == "Learn":
    st.header("Learn About Protein")
    topic = st.radio("Topic", list(TOPIC_DISPLAY_NAMES), format_func=TOPIC_DISPLAY_NAMES.get, horizontal=True)
    for card in cards_for(topic):
        st.subheader(card.title)
        st.markdown(card.content)
    if topic == "sources":
        st.subheader("Highest Quality Sources")
        cols = st.columns(2)
        for idx, source in enumerate(catalog.highest_quality_sources(limit=8)):
            cols[idx % 2].markdown(
                f"**{source.name}**  \n{_score_line(source)} · {source.category_display_name}"
            )
