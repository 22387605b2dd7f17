import logging
import os
from typing import Optional

from azure.core.exceptions import HttpResponseError
from azure.monitor.opentelemetry import configure_azure_monitor
from opentelemetry.sdk.resources import Resource

# Set up logger for this module
logger = logging.getLogger(__name__)


def setup_azure_monitor(logger_name: Optional[str] = None) -> bool:
    """
    Configure Azure Monitor / Application Insights if a connection string is available.

    Args:
        logger_name (str, optional): Name for the Azure Monitor logger. Defaults to
            the AZURE_MONITOR_LOGGER_NAME environment variable or 'redis_brain'.

    Returns:
        bool: True when the exporter was configured.
    """
    connection_string = os.getenv("APPLICATIONINSIGHTS_CONNECTION_STRING")
    logger_name = logger_name or os.getenv("AZURE_MONITOR_LOGGER_NAME", "redis_brain")

    resource_attrs = {
        "service.name": "redis-brain",
        "service.namespace": "hubot",
    }
    env_name = os.getenv("ENVIRONMENT")
    if env_name:
        resource_attrs["service.environment"] = env_name

    if not connection_string:
        logger.info(
            "APPLICATIONINSIGHTS_CONNECTION_STRING not found, skipping Azure Monitor configuration"
        )
        return False

    logger.info(f"Setting up Azure Monitor with logger_name: {logger_name}")

    try:
        configure_azure_monitor(
            resource=Resource.create(resource_attrs),
            logger_name=logger_name,
            connection_string=connection_string,
            enable_live_metrics=False,
            instrumentation_options={
                "redis": {"enabled": True},
            },
        )
        logger.info("Azure Monitor configured successfully")
        return True
    except HttpResponseError as e:
        logger.error(f"HTTP error configuring Azure Monitor: {e}")
    except Exception as e:
        logger.error(f"Failed to configure Azure Monitor: {e}", exc_info=True)
    return False
