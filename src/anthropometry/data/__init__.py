"""Packaged WHO reference tables (built by scripts/download_data.py)."""
