from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Global Limiter instance to be imported by controllers.
# Storage URI and the enabled flag come from AppConfig through app.config
# (RATELIMIT_STORAGE_URI / RATELIMIT_ENABLED) when create_app() binds it.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per hour", "50 per minute"],
)

LOGIN_RATE_LIMIT = "5 per minute;20 per hour"
