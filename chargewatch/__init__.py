"""chargewatch - laptop battery telemetry and charging mode control."""

__version__ = "0.1.0"
