"""Flow Integrity: state transition validation for payment, session and video call lifecycles."""

__version__ = "1.0.0"
