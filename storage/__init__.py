"""Storage package utilities."""

__all__ = ["PackageManager", "SiteImportService", "SiteRepository", "UserRepository"]


def __getattr__(name: str):
    if name == "UserRepository":
        from storage.users import UserRepository

        return UserRepository
    if name == "SiteRepository":
        from storage.sites import SiteRepository

        return SiteRepository
    if name == "SiteImportService":
        from storage.sites import SiteImportService

        return SiteImportService
    if name == "PackageManager":
        from storage.packages import PackageManager

        return PackageManager
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
