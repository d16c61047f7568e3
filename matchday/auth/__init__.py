"""Session helpers shared by the blueprints."""

from .decorators import login_required

__all__ = ["login_required"]
