# npm registry endpoints
NPM_REGISTRY_URL = "https://registry.npmjs.org"
NPM_DOWNLOADS_URL = "https://api.npmjs.org/downloads/point/last-week"
NPM_REQUEST_TIMEOUT = 30.0  # seconds
NPM_MAX_RETRIES = 3  # Retries on 429 / 5xx before giving up

# Environment overrides (explicit argument > env var > default)
ENV_REGISTRY_URL = "NPM_REGISTRY_URL"
ENV_DOWNLOADS_URL = "NPM_DOWNLOADS_URL"
ENV_PACKAGE_MANAGER = "SCOUT_PACKAGE_MANAGER"

# Search
SEARCH_DEFAULT_LIMIT = 20

# Evaluation
EVALUATION_CONCURRENCY = 5  # Max packages fetched in parallel
EVALUATION_RECOMMENDED_MAX = 15  # Callers are expected to pass at most this many

# Maintenance scoring
DAYS_PER_MONTH = 30
SYNTHETIC_TIME_KEYS = ("created", "modified")

# Popularity step function: (minimum weekly downloads, score), highest first
POPULARITY_STEPS = [
    (10_000_000, 10),
    (1_000_000, 8),
    (100_000, 6),
    (10_000, 4),
    (1_000, 2),
]
POPULARITY_FLOOR = 1

# Types-only namespace on npm
TYPES_NAMESPACE_PREFIX = "@types/"

# License policy (case-insensitive substring match, compatible checked first)
COMPATIBLE_LICENSES = ["MIT", "Apache-2.0", "BSD-2-Clause", "BSD-3-Clause", "ISC", "CC0-1.0", "0BSD"]
PROBLEMATIC_LICENSES = ["GPL-3.0", "AGPL-3.0", "AGPL"]
UNKNOWN_LICENSE = "Unknown"

# Ranking
MIN_COMPOSITE_SCORE = 5.0  # Candidates below this are excluded from recommendation

# Post-install validation
SCRIPT_TIMEOUT = 60  # seconds for `test` / `lint` scripts
INSTALL_TIMEOUT = 600  # seconds for install / audit
