"""Streamlit dashboard for ReviewPulse."""

import logging

import streamlit as st

from reviewpulse.core.config import settings
from reviewpulse.core.constants import FileConstants
from reviewpulse.core.errors import InvalidFilter
from reviewpulse.core.models import Platform
from reviewpulse.services.pipeline import ReviewPipeline

logging.basicConfig(level=logging.INFO, format=FileConstants.LOG_FORMAT)
logger = logging.getLogger(__name__)


def _excerpt(s, n=240):
    s = (s or "").strip().replace("\n", " ")
    return s if len(s) <= n else s[:n-1] + "…"


@st.cache_resource
def get_pipeline() -> ReviewPipeline:
    return ReviewPipeline.from_settings(settings)


st.set_page_config(
    page_title="ReviewPulse - Review Analytics",
    page_icon="📈",
    layout="wide"
)

pipeline = get_pipeline()

st.title("📈 ReviewPulse - Review Analytics")
st.write("Aggregate reviews from Google Maps, Yelp, and Trustpilot and track sentiment, ratings, and topics.")

with st.sidebar:
    st.header("📥 Ingest")
    business = st.text_input("Business name", value=st.session_state.get("business", ""))
    location = st.text_input("Location (required for Yelp)", value="")
    if st.button("Fetch reviews", disabled=not business.strip()):
        st.session_state["business"] = business
        with st.spinner(f"Aggregating reviews for {business}..."):
            summary = pipeline.aggregate_and_store(business, location or None)
        st.success(f"Processed {summary.total_found} reviews, saved {summary.newly_stored} new ones")

    st.header("🔎 Filters")
    name_filter = st.text_input("Business filter", value=st.session_state.get("business", ""))
    platform_filter = st.selectbox("Platform", ["All"] + [p.value for p in Platform])
    days = st.slider("Days", 1, 365, settings.default_days)

try:
    report = pipeline.analytics({
        "business_name": name_filter,
        "platform": None if platform_filter == "All" else platform_filter,
        "days": days,
    })
except InvalidFilter as e:
    st.error(f"Invalid filter: {e}")
    st.stop()

col1, col2, col3, col4 = st.columns(4)
col1.metric("Total reviews", report.total_reviews)
col2.metric("Average rating", f"{report.average_rating:.2f} / 5")
col3.metric("Positive", report.sentiment_distribution["positive"])
col4.metric("Negative", report.sentiment_distribution["negative"])

st.subheader("💡 Insights")
for insight in report.insights:
    st.write(f"- {insight}")

if report.total_reviews:
    left, right = st.columns(2)
    with left:
        st.subheader("⭐ Rating distribution")
        st.bar_chart({str(k): v for k, v in report.rating_distribution.items()})
    with right:
        st.subheader("🌐 Platforms")
        st.bar_chart(report.platform_distribution)

    st.subheader("📅 Daily trend")
    st.line_chart(
        {t["date"]: t["average_rating"] for t in report.daily_trends},
    )

    if report.top_topics:
        st.subheader("🏷️ Top topics")
        st.table(report.top_topics)

    if len(report.business_comparison) > 1:
        st.subheader("🏁 Business comparison")
        st.table(report.business_comparison)

    pos_col, neg_col = st.columns(2)
    with pos_col:
        st.subheader("👍 Recent positive")
        for review in report.recent_positive:
            st.markdown(f"**{review.rating}★ {review.business_name}** ({review.platform.value}): {_excerpt(review.content)}")
    with neg_col:
        st.subheader("👎 Recent negative")
        for review in report.recent_negative:
            st.markdown(f"**{review.rating}★ {review.business_name}** ({review.platform.value}): {_excerpt(review.content)}")
