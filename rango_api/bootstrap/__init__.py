from rango_api.bootstrap.docs import SwaggerConfig
from rango_api.bootstrap.middleware import register_core_middleware
from rango_api.bootstrap.server import ServerFactory

__all__ = [
    "ServerFactory",
    "SwaggerConfig",
    "register_core_middleware",
]
