"""
Gunicorn configuration for the sales dashboard API.

Every worker holds its own refresher. With DASHBOARD_BACKGROUND_REFRESH on,
each worker polls the feed on its own schedule, so keep WORKERS small.
"""

import os

bind = os.getenv("BIND", "0.0.0.0:8000")
workers = int(os.getenv("WORKERS", 2))
worker_class = "uvicorn.workers.UvicornWorker"

# A cold feed fetch plus aggregation can exceed the default 30s
timeout = int(os.getenv("GUNICORN_TIMEOUT", 120))
graceful_timeout = 30
max_requests = 5000
max_requests_jitter = 500

proc_name = "sales-dashboard-analytics"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
errorlog = "-"
# Request logging is done by the app middleware
accesslog = None


def when_ready(server):
    server.log.info("Sales dashboard API listening on %s with %d workers", bind, workers)
