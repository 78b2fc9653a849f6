"""Parallel execution of grid sampling and independent map sequences."""
