"""Camera stream relay mediator.

Registers IP-camera RTSP sources with an external media relay and reports
host telemetry to the dashboard.
"""

__version__ = "1.0.0"
