from enum import Enum


class UpstreamKind(str, Enum):
    HTML = "html"
    API = "api"


class NotificationStyle(str, Enum):
    CONTENT = "content"  # Plain Discord "content" message
    EMBED = "embed"  # Discord embed with title/description/url


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    FAILED = "failed"
