from prometheus_client import Counter, Histogram


# Order Metrics
orders_placed_total = Counter("marketplace_orders_placed_total", "Total orders placed", ["status"])
order_value = Histogram(
    "marketplace_order_value",
    "Order value distribution",
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, float("inf")],
)
order_status_transitions_total = Counter(
    "marketplace_order_status_transitions_total", "Order status transitions", ["from_status", "to_status"]
)

# Stock Metrics
stock_decrement_failures = Counter("marketplace_stock_decrement_failure", "Conditional stock decrements that lost")

# Notification Metrics
notifications_dispatched_total = Counter(
    "marketplace_notifications_dispatched_total", "Notification dispatch attempts", ["status"]
)
