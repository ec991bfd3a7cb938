from informer.api.routes import router, set_services

__all__ = ["router", "set_services"]
