import multiprocessing
import os

# Gunicorn settings for the storefront JSON API
# Requests are short reads/writes against storage_entries. Each thread
# holds its own db.session, so threads per worker must stay within the
# engine pool (pool_size + max_overflow in config.py).
bind = os.environ.get('GUNICORN_BIND', '0.0.0.0:8000')
workers = int(os.environ.get('GUNICORN_WORKERS', min(multiprocessing.cpu_count() + 1, 4)))
threads = int(os.environ.get('GUNICORN_THREADS', 4))
worker_class = 'gthread'

# Checkout renders one small receipt; anything slower is stuck
timeout = 30
graceful_timeout = 20
max_requests = 2000
max_requests_jitter = 200
keepalive = 5

# Logging goes to stdout/stderr next to the app's own stream handler
accesslog = '-'
errorlog = '-'
loglevel = os.environ.get('GUNICORN_LOG_LEVEL', 'info')
capture_output = True
