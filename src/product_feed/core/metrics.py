from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)

UPSTREAM_REQUEST_COUNT = Counter(
    "upstream_requests_total",
    "Total number of upstream feed request attempts",
    ["status"],
)

UPSTREAM_REQUEST_DURATION = Histogram(
    "upstream_request_duration_seconds",
    "Duration of upstream feed request attempts in seconds",
)

UPSTREAM_RETRIES = Counter("upstream_retries_total", "Total number of upstream retries")

CACHE_HITS = Counter("cache_hits_total", "Total number of cache hits")
CACHE_MISSES = Counter("cache_misses_total", "Total number of cache misses")
CACHE_EVICTIONS = Counter("cache_evictions_total", "Total number of FIFO cache evictions")

HOT_SUBFETCH_FAILURES = Counter(
    "hot_subfetch_failures_total",
    "Category fetches that failed while generating the Hot feed",
    ["category"],
)
