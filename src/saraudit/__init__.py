"""
saraudit: window aggregation and anomaly ranking of recorded system activity
telemetry (sysstat sa[NN] files and atop raw logs).
"""

__version__ = "0.1.0"
