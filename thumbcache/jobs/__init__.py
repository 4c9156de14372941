"""Batch job scripts."""
