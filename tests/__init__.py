"""Test package for location-insights.

This package contains:
- Unit tests (test_spatial.py, test_scoring.py, test_summary.py, test_tools.py)
- Shared fixtures (conftest.py)
"""
