# gunicorn -c gunicorn.conf.py campus_events.main:app
import os

bind = f"0.0.0.0:{os.getenv('PORT', 8000)}"
workers = int(os.getenv('WEB_CONCURRENCY', 2))
worker_class = "uvicorn.workers.UvicornWorker"
timeout = int(os.getenv('GUNICORN_TIMEOUT', 60))
loglevel = os.getenv('LOG_LEVEL', 'info').lower()
accesslog = "-"
max_requests = 1000
max_requests_jitter = 100
preload_app = True
