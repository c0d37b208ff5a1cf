from .development import DevelopmentSettings

__all__ = ["DevelopmentSettings"]
