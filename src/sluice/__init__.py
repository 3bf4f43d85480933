"""Sluice: interactive dataflow pipelines with lineage snapshots."""

__version__ = "0.1.0"
