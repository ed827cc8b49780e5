from .mail import MailerConfig, MailSettings, MailThrottleSettings
from .settings import Settings, create_settings, get_settings

__all__ = [
    "MailerConfig",
    "MailSettings",
    "MailThrottleSettings",
    "Settings",
    "create_settings",
    "get_settings",
]
