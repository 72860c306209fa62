"""
Main API configuration for Django Ninja Extra.
All API controllers are automatically registered here.
"""

import importlib
import inspect
import logging

from ninja_extra import NinjaExtraAPI

from thesis_backend.core.api.base import BaseAPI

logger = logging.getLogger(__name__)

api = NinjaExtraAPI(
    title="Thesis Backend API",
    version="1.0.0",
    description="Pre-projects, advisor solicitation and books",
    docs_url="/docs",
    openapi_url="/openapi.json",
)


def register_controllers_from_module(api_instance: NinjaExtraAPI, module_path: str) -> None:
    """
    Dynamically import and register API controllers from a module.

    Controllers must inherit from BaseAPI to be registered.
    """
    try:
        module = importlib.import_module(module_path)
        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if (
                inspect.isclass(attr)
                and issubclass(attr, BaseAPI)
                and attr is not BaseAPI
            ):
                logger.debug("Registering controller: %s.%s", module_path, attr_name)
                api_instance.register_controllers(attr)
    except ModuleNotFoundError:
        logger.debug("Module %s not found, skipping", module_path)
    except Exception:
        logger.exception("Error registering controllers from %s", module_path)


# Register controllers from each local app
LOCAL_APPS = [
    "thesis_backend.preprojects",
    "thesis_backend.books",
]

for app in LOCAL_APPS:
    register_controllers_from_module(api_instance=api, module_path=f"{app}.api")
