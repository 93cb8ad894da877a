"""
Production Server Configuration

Run FastAPI with Uvicorn workers under Gunicorn for production deployment.
Several workers only stay consistent with REALTIME_BACKEND=redis and
SESSION_BACKEND=redis.
"""

import multiprocessing
import os

wsgi_app = "backoffice.main:app"

# Server socket
bind = os.getenv("BIND", "0.0.0.0:8000")
backlog = 2048

# Worker processes
workers = int(os.getenv("WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
max_requests = 10000
max_requests_jitter = 1000
timeout = 120
keepalive = 5
graceful_timeout = 30

# Process naming
proc_name = "storefront-backoffice-api"

# Server mechanics
daemon = False
pidfile = "/tmp/gunicorn.pid"

# Logging
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = "-"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'


def when_ready(server):
    """Called when server is ready to receive connections."""
    server.log.info("Back-office API ready with %s workers", workers)


def worker_int(worker):
    """Called when worker receives INT or QUIT signal."""
    worker.log.info("Worker interrupted (pid: %s)", worker.pid)
