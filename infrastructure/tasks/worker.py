"""Convenience entry point for running a Celery worker.

``python -m infrastructure.tasks.worker`` consumes the high and default
queues; production deployments usually call the Celery CLI directly.
"""
from __future__ import annotations

from core.logging_config import configure_logging

from .config.celery import celery_app


def main() -> None:
    configure_logging()
    celery_app.worker_main(
        argv=[
            "worker",
            "--loglevel=INFO",
            "--hostname=homecook-worker@%h",
            "--queues=high,default",
        ]
    )


if __name__ == "__main__":
    main()
