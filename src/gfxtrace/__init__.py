"""gfxtrace -- Graphics trace capture configuration and supervision.

This package models a graphics-trace request for an Android device or a
desktop executable, decides when a partially filled request is ready to
launch, and supervises the external tracer process while it captures.
"""

__version__ = "0.1.0"
