from prometheus_client import Counter, Histogram, make_asgi_app

# 低基数标签：使用路由模板（如 /api/v1/objects/{key}），避免动态参数导致高基数
REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

LATENCY = Histogram(
    "http_request_duration_seconds",
    "Request latency in seconds",
    ["method", "route"],
)

# operation 是 facade 方法名，outcome 为 success / empty / validation_error / backend_error
STORAGE_OPERATIONS = Counter(
    "storage_operations_total",
    "Storage facade operations",
    ["operation", "outcome"],
)

STORAGE_LATENCY = Histogram(
    "storage_operation_duration_seconds",
    "Storage backend call latency in seconds",
    ["operation"],
)

# /metrics 端点 ASGI 应用
metrics_app = make_asgi_app()
