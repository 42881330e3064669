from .demo import DemoEndpoints, register_demo_endpoints
from .router import router as api_router

__all__ = ['DemoEndpoints', 'api_router', 'register_demo_endpoints']
