"""HTTP boundary."""

from .routes import add_exception_handlers, build_app, build_router

__all__ = ["add_exception_handlers", "build_app", "build_router"]
