import os

def cpu():
    return max(1, (os.cpu_count() or 1))

# gunicorn -c gunicorn.conf.py storefront.main:app
bind = f"0.0.0.0:{os.getenv('PORT', '5000')}"

# Workers (processes); async gateway calls share each worker's event loop
workers = int(os.getenv("WEB_CONCURRENCY", str(min(max(2, cpu() * 2), 8))))
worker_class = "uvicorn.workers.UvicornWorker"

# Timeouts
timeout = int(os.getenv("GUNI_TIMEOUT", "60"))
graceful_timeout = int(os.getenv("GUNI_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNI_KEEPALIVE", "5"))

# Robustness
max_requests = int(os.getenv("GUNI_MAX_REQUESTS", "2000"))
max_requests_jitter = int(os.getenv("GUNI_MAX_REQUESTS_JITTER", "200"))

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNI_LOGLEVEL", "info")
