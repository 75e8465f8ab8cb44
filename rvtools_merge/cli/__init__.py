"""Command line interface (``python -m rvtools_merge.cli``)."""
