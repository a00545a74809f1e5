"""Load testing library: simulated bots driven by load shapes, with scripted behaviours and storage."""

__version__ = "0.3.0"