"""Business metrics for the lending service."""

from opentelemetry import metrics

# Instruments are no-ops until a MeterProvider is installed by telemetry setup
meter = metrics.get_meter(__name__)

http_request_duration = meter.create_histogram(
    name="http_request_duration_seconds",
    description="Duration of HTTP requests in seconds",
    unit="s",
)

books_added_total = meter.create_counter(
    name="books_added_total",
    description="Total number of books added to the catalog",
)

users_created_total = meter.create_counter(
    name="users_created_total",
    description="Total number of users created",
)

books_borrowed_total = meter.create_counter(
    name="books_borrowed_total",
    description="Total number of successful borrows",
)

books_returned_total = meter.create_counter(
    name="books_returned_total",
    description="Total number of successful returns",
)

lending_rejections_total = meter.create_counter(
    name="lending_rejections_total",
    description="Borrow and return attempts rejected by the lending policy",
)
