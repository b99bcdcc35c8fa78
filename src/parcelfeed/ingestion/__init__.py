"""Ingestion layer.

This package turns the raw byte stream coming off the serial link into
finalized measurements.
"""

__all__: list[str] = []
