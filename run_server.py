#!/usr/bin/env python
"""
Sales dashboard API launcher.

    python run_server.py --dev        # uvicorn with reload
    python run_server.py              # single uvicorn process
    python run_server.py --gunicorn   # gunicorn with uvicorn workers

Host, port and log level come from the application settings (API_HOST,
API_PORT, LOG_LEVEL); --port overrides the port.
"""

import argparse
import os
import subprocess

import uvicorn

from sales_analytics.config import get_settings

APP = "sales_analytics.main:app"


def serve(port: int, dev: bool) -> None:
    settings = get_settings()
    # Background polling is per process, so one uvicorn process only
    uvicorn.run(
        APP,
        host=settings.api_host,
        port=port,
        reload=dev,
        reload_dirs=["sales_analytics"] if dev else None,
        log_level="debug" if dev else settings.monitoring.log_level.lower(),
        proxy_headers=not dev,
        server_header=False,
    )


def serve_gunicorn(port: int) -> None:
    env = dict(os.environ, BIND=f"{get_settings().api_host}:{port}")
    subprocess.run(["gunicorn", APP, "-c", "gunicorn.conf.py"], env=env, check=True)


def main() -> None:
    parser = argparse.ArgumentParser(description="Sales Dashboard Analytics API")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--dev", action="store_true", help="Reload on code changes")
    mode.add_argument("--gunicorn", action="store_true", help="Run under gunicorn")
    parser.add_argument("--port", type=int, default=get_settings().api_port)
    args = parser.parse_args()

    if args.gunicorn:
        serve_gunicorn(args.port)
    else:
        serve(args.port, dev=args.dev)


if __name__ == "__main__":
    main()
