"""Identity bounded context: user accounts, roles, permissions and the request principal."""

from shared.utils.logging import get_logger

logger = get_logger(__name__)
