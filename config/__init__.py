"""Configuration package utilities."""

__all__ = ["ConfigController", "write_settings"]


def __getattr__(name: str):
    if name == "ConfigController":
        from config.controller import ConfigController

        return ConfigController
    if name == "write_settings":
        from config.settings import write_settings

        return write_settings
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
