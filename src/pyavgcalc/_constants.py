"""Internal constants shared across the library."""

BASE_URL = "http://20.244.56.144/evaluation-service"
USER_AGENT = "pyavgcalc/1"

#: Upstream path per number category.
CATEGORY_ENDPOINTS: dict[str, str] = {
    "p": "/primes",
    "f": "/fibo",
    "e": "/even",
    "r": "/rand",
}

CATEGORY_NAMES: dict[str, str] = {
    "p": "prime",
    "f": "fibonacci",
    "e": "even",
    "r": "random",
}

REGISTER_ENDPOINT = "/register"
AUTH_ENDPOINT = "/auth"
USERS_ENDPOINT = "/users"

DEFAULT_WINDOW_SIZE = 10
#: Hard timeout for number fetches, in seconds.
DEFAULT_FETCH_TIMEOUT = 0.5
#: Timeout for the registration/auth exchange and analytics calls.
DEFAULT_EXCHANGE_TIMEOUT = 10.0
DEFAULT_ANALYTICS_CACHE_TTL = 5 * 60.0
#: Upper bound on in-flight per-user and per-post analytics calls.
DEFAULT_ANALYTICS_CONCURRENCY = 4
DEFAULT_CREDENTIAL_PATH = "auth_token.json"

AUTH_FAILURE_STATUSES: frozenset[int] = frozenset({401})

TOP_USERS_LIMIT = 5
LATEST_POSTS_LIMIT = 5
