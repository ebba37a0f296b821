from portal.config.settings import settings

__all__ = ["settings"]
