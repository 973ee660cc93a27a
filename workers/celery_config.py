"""Celery configuration for async task processing."""

from kombu import Exchange, Queue

from core.config import settings

# Broker configuration (Redis)
broker_url = settings.celery_broker_url
result_backend = settings.celery_result_backend

# Task routing and serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"
timezone = "UTC"
enable_utc = True

# Task execution settings
task_track_started = True
task_time_limit = 5 * 60  # 5 minutes hard limit
task_soft_time_limit = 4 * 60  # 4 minutes soft limit

# Worker settings
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000

# Queue configuration with routing
default_exchange = Exchange("hirelane", type="direct")
default_queue_name = "default"
task_queues = (
    Queue("default", exchange=default_exchange, routing_key="default"),
    Queue("notifications", exchange=default_exchange, routing_key="notifications"),
)

# Task routing
task_routes = {
    "workers.tasks.notifications.*": {"queue": "notifications"},
}

# Result backend settings
result_expires = 3600  # Results expire after 1 hour
