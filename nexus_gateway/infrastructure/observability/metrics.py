"""Prometheus metrics for monitoring payment routing, compliance gates and tokenization"""

from prometheus_client import Counter, Histogram

# Payment metrics
payment_submission_counter = Counter(
    "nexus_payment_submission_total",
    "Payment submissions by outcome",
    ["outcome", "stage"],  # accepted | rejected, stage that decided
)

rail_selection_counter = Counter(
    "nexus_rail_selection_total",
    "Payment rails selected",
    ["rail", "downgraded"],
)

cop_result_counter = Counter(
    "nexus_cop_result_total",
    "Confirmation of Payee outcomes",
    ["result"],  # match | close_match | no_match | unavailable
)

cooling_denial_counter = Counter(
    "nexus_cooling_denial_total",
    "Payments blocked by the new payee cooling period",
    ["rail"],
)

# External registry
cop_registry_failures_counter = Counter(
    "cop_registry_failures_total",
    "Failed Confirmation of Payee registry calls",
)

cop_registry_latency_histogram = Histogram(
    "cop_registry_latency_seconds",
    "Confirmation of Payee registry response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# Tokenization
token_issued_counter = Counter(
    "nexus_card_token_issued_total",
    "Card tokens issued",
    ["token_type"],
)

detokenize_counter = Counter(
    "nexus_detokenize_total",
    "Token resolution attempts",
    ["outcome"],  # resolved | not_found
)

# Audit sink
audit_write_failures_counter = Counter(
    "audit_write_failures_total",
    "Audit or PCI access log entries that could not be written",
    ["sink"],  # audit | pci
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment_outcome(accepted: bool, stage: str) -> None:
    """Record how far a submission got before it was accepted or rejected"""
    outcome = "accepted" if accepted else "rejected"
    payment_submission_counter.labels(outcome=outcome, stage=stage).inc()


def record_rail_selection(rail: str, urgency_downgraded: bool) -> None:
    rail_selection_counter.labels(rail=rail, downgraded=str(urgency_downgraded).lower()).inc()
