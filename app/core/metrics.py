from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
)

BOOKINGS_CREATED = Counter(
    "bookings_created_total",
    "Bookings committed by the reservation path",
    ["status"],
)

BOOKING_CONFLICTS = Counter(
    "booking_conflicts_total",
    "Reservation attempts rejected because the interval was taken",
)

SLOT_QUERY_LATENCY = Histogram(
    "slot_query_duration_seconds",
    "Time spent computing candidate slots for a service",
)


def render_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
