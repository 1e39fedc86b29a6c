import os
import tempfile

# app.core.config reads the environment once at import time. Apply the test
# environment that tests/test_api.py declares before any test module imports
# the app, so the result does not depend on collection order.
_TMP_DIR = tempfile.mkdtemp(prefix="coverforge-tests-")
os.environ.setdefault("ANALYTICS_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("REMOTE_STORE_BACKEND", "none")
os.environ.setdefault("CACHE_DB_PATH", os.path.join(_TMP_DIR, "device_cache.db"))
os.environ.setdefault("AI_RATE_LIMIT_DB_PATH", os.path.join(_TMP_DIR, "ai_rate_limit.db"))
