"""
Gunicorn configuration for production deployment
Run with: gunicorn app.main:app -c gunicorn.conf.py
"""
import os

# Server socket
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:5000")
backlog = 512

# Worker processes
# The app is I/O bound (MongoDB, Redis, Gemini); two async workers serve a single shop comfortably
workers = int(os.getenv("GUNICORN_WORKERS", 2))
worker_class = "uvicorn.workers.UvicornWorker"

# Worker lifecycle
max_requests = 1000
max_requests_jitter = 100

# Timeouts
# Vision extraction calls can take several seconds
timeout = int(os.getenv("GUNICORN_TIMEOUT", 60))
keepalive = 5
graceful_timeout = 30

# Process naming
proc_name = "repair_tracker_api"

# Server mechanics
daemon = False  # Docker/systemd supervise the process
pidfile = None

# Logging
# The app emits its own structured access log, so gunicorn's is off
accesslog = None
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()


# Server hooks
def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info("Starting Gunicorn server")


def when_ready(server):
    """Called just after the server is started."""
    server.log.info("Gunicorn server is ready. Spawning workers")


def worker_abort(worker):
    """Called when a worker is aborted (usually a timeout)."""
    worker.log.info("Worker received SIGABRT signal")
