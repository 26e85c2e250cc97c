"""
Guidance Module
===============

Periodic camera analysis for the AR guidance view.

Components:
    - GuidanceMonitor: Timer-driven classifier caller with spoken alerts
    - GuidanceMonitorMetrics: Monitor counters
"""

from medsight.guidance.monitor import GuidanceMonitor, GuidanceMonitorMetrics

__all__ = ["GuidanceMonitor", "GuidanceMonitorMetrics"]
