"""Streamlit rendering components for the dashboard."""
