"""MindToss capture pipeline.

Public API re-exported here for convenience::

    from mindtoss import ApiClient, DeliveryDispatcher, LocalState, TossController
"""

from .capture import Capture, build_capture, capture_blocker, format_duration, parse_data_url
from .config import ClientConfig, RelayConfig
from .controller import TossController
from .deeplink import parse_deep_link, take_pending_share
from .dispatcher import DeliveryDispatcher, DeliveryReceipt
from .errors import (
    ApiError,
    CaptureRejected,
    ConfigurationError,
    DeliveryError,
    DestinationRejected,
    NetworkError,
    RecipientRejected,
    ServiceError,
    TossError,
    ValidationError,
)
from .gateway import ApiClient, AuthGateway, hash_password
from .history import HistoryStore
from .local import LocalState
from .logging import setup_logging
from .models import (
    AppUser,
    Attachment,
    Category,
    EmailAccount,
    RemoteState,
    TossItem,
    TossType,
    UserProfile,
)
from .recorder import MicrophoneBackend, RecorderBusy, VoiceRecorder
from .state import AppState, Screen, send_blocker, transition
from .storage import JsonFileStore, KeyValueStore, MemoryStore
from .sync import RemoteStateSync
from .transports import (
    EmailRequest,
    EmailTransport,
    ResendTransport,
    Smtp2GoTransport,
    build_relay_transport,
)
from .validation import EmailStatus, get_destination_email_status, normalize_email

__all__ = [
    "ApiClient",
    "ApiError",
    "AppState",
    "AppUser",
    "Attachment",
    "AuthGateway",
    "Capture",
    "CaptureRejected",
    "Category",
    "ClientConfig",
    "ConfigurationError",
    "DeliveryDispatcher",
    "DeliveryError",
    "DeliveryReceipt",
    "DestinationRejected",
    "EmailAccount",
    "EmailRequest",
    "EmailStatus",
    "EmailTransport",
    "HistoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "LocalState",
    "MemoryStore",
    "MicrophoneBackend",
    "NetworkError",
    "RecipientRejected",
    "RecorderBusy",
    "RelayConfig",
    "RemoteState",
    "RemoteStateSync",
    "ResendTransport",
    "Screen",
    "ServiceError",
    "Smtp2GoTransport",
    "TossController",
    "TossError",
    "TossItem",
    "TossType",
    "UserProfile",
    "ValidationError",
    "VoiceRecorder",
    "build_capture",
    "build_relay_transport",
    "capture_blocker",
    "format_duration",
    "get_destination_email_status",
    "hash_password",
    "normalize_email",
    "parse_data_url",
    "parse_deep_link",
    "send_blocker",
    "setup_logging",
    "take_pending_share",
    "transition",
]
