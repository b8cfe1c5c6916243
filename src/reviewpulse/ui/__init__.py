"""Streamlit dashboard for ReviewPulse."""
