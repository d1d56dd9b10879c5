from tripcost.handlers.basic import basic_router
from tripcost.handlers.costs import costs_router

__all__ = ["basic_router", "costs_router"]
