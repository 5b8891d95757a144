"""Gunicorn configuration for the pricing & calculation API.

Run with: gunicorn -c gunicorn.conf.py 'zakat_engine:create_app()'
"""

# Server socket
bind = '0.0.0.0:8080'

# Provider chains block for up to PRICING_CHAIN_DEADLINE_SECONDS (25s by
# default), so the worker timeout must stay above it
workers = 2
worker_class = 'gthread'
threads = 4
timeout = 60
keepalive = 2

# Logging
accesslog = '-'
errorlog = '-'
loglevel = 'info'

# Process naming
proc_name = 'zakat-engine'

# Server mechanics
daemon = False
pidfile = None
umask = 0
