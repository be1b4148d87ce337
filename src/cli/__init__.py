"""CLI tools for the Ubiqitum KPI cache.

- ``python -m src.cli key``: print the Stability Key for a brand identity.
- ``python -m src.cli normalize``: run the numeric normalizer.
- ``python -m src.cli score``: fetch KPI scores through the cache.
"""
