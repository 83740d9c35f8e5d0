# Core module exports
from constraintkit.core.config import Settings, get_settings
from constraintkit.core.logging import (
    configure_logging,
    get_logger,
    bind_context,
    clear_context,
)
