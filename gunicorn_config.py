import multiprocessing
import os

# Gunicorn Production Configuration
bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Workers: (2x CPU Count) + 1 for an IO-bound API; override with WEB_CONCURRENCY
workers = int(os.environ.get('WEB_CONCURRENCY', multiprocessing.cpu_count() * 2 + 1))
threads = 2
worker_class = 'gthread'

# Resilience
timeout = 60
graceful_timeout = 30
max_requests = 1000
max_requests_jitter = 100
keepalive = 5

# Logging
accesslog = '-'       # Stdout
errorlog = '-'        # Stderr
loglevel = os.environ.get('LOG_LEVEL', 'info').lower()
capture_output = True
