"""
File Ingestion Collectors

Long-running services around the input folder:
- index_watcher.py - Watchdog observer, single batch worker, operator console
- liveness.py - Heartbeat state and stall alerts
"""
