from stackline.config.settings import (
    CacheSettings,
    GitHubSettings,
    LoggingSettings,
    MergeSettings,
    Settings,
    load_settings,
)

__all__ = [
    'Settings',
    'GitHubSettings',
    'LoggingSettings',
    'CacheSettings',
    'MergeSettings',
    'load_settings',
]
