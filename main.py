import asyncio
import logging
import sys

from admincp.config import get_settings
from admincp.core.bootstrap import BootstrapError, reconcile
from admincp.db.exceptions import DaoError
from admincp.db.factory import open_storage


async def main() -> int:
    """Open storage and reconcile the seed data; non-zero exit on failure."""
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level_value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
    logger = logging.getLogger(__name__)

    try:
        storage = await open_storage(settings.db)
    except (DaoError, OSError, ValueError) as e:
        logger.critical("Cannot initialise storage: %s", e)
        return 1

    try:
        result = await reconcile(
            storage.group_dao, storage.user_dao, admin_password=settings.admin.default_password
        )
        if isinstance(result, BootstrapError):
            logger.critical("Bootstrap failed: %s", result)
            return 1
        logger.info(
            "Storage ready: system group [%s], admin user [%s]%s",
            result.system_group.id,
            result.admin_user.username,
            f", created {', '.join(result.created)}" if result.created else "",
        )
    finally:
        await storage.close()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logging.info("Stopped.")
