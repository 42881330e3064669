from .registry import Endpoint, EndpointRegistry, Handler

__all__ = ['Endpoint', 'EndpointRegistry', 'Handler']
