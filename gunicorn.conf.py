"""Gunicorn configuration file with per-worker token refresh.

Each worker imports ``mpconsole.flask_app:app`` and owns its own credential
store, so the scheduled refresh is started once the worker has loaded the
application (post_worker_init) and stopped when it exits (worker_exit).

Set TOKEN_REFRESH_ENABLED=false to disable the scheduled refresh; tokens are
then obtained on demand by the request pipeline.

The platform issues one access token per account and invalidates the previous
one a few minutes after each refresh, so two workers refreshing on their own
would keep revoking each other's token. The server therefore runs a single
worker and takes its concurrency from threads (gthread). Running more than one
worker requires a credential store shared between them.
"""
import os

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8990")
workers = 1
worker_class = "gthread"
threads = int(os.environ.get("GUNICORN_THREADS", "8"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "60"))


def _container(worker):
    app = getattr(worker, "wsgi", None)
    extensions = getattr(app, "extensions", None) or {}
    return extensions.get("mpconsole")


def _refresh_enabled(worker) -> bool:
    cfg = worker.wsgi.config.get("APP_CONFIG")
    return cfg is None or cfg.token_refresh_enabled


def post_worker_init(worker):
    """
    Called just after a worker has initialized the application.

    Starts the background access token refresh of this worker.
    """
    container = _container(worker)
    if container is None:
        worker.log.error("Console container not found on the WSGI app; token refresh not started")
        return

    if not _refresh_enabled(worker):
        worker.log.info("Skipping scheduled token refresh (TOKEN_REFRESH_ENABLED=false)")
        return

    container.scheduler.start()
    worker.log.info(f"Scheduled token refresh started (every {container.scheduler.interval:.0f}s)")


def worker_exit(server, worker):
    """Called just after a worker has exited: stop the refresh thread."""
    container = _container(worker)
    if container is not None:
        container.scheduler.stop()
        worker.log.info("Scheduled token refresh stopped")
