"""
Gunicorn configuration for the Education API.
Run with: gunicorn education_api.main:app -c gunicorn.conf.py
"""
import multiprocessing
import os

# Server socket
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
backlog = 2048

# Worker processes
# bcrypt hashing is CPU bound, so scale with cores: (2 * cores) + 1
workers = int(os.getenv("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"

# Worker lifecycle
max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", 1000))
max_requests_jitter = 100

# Timeouts
timeout = int(os.getenv("GUNICORN_TIMEOUT", 30))
keepalive = 5
graceful_timeout = 30

# Process naming
proc_name = "education_api"

# Logging
accesslog = "-"  # Log to stdout
errorlog = "-"   # Log to stderr
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(D)s'


# Server hooks
def when_ready(server):
    """Called just after the server is started."""
    server.log.info(f"Education API ready with {workers} workers on {bind}")


def worker_abort(worker):
    """Called when a worker is aborted (usually a request exceeded the timeout)."""
    worker.log.warning(f"Worker {worker.pid} aborted after timeout")
