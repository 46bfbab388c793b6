from .errors import GridError, CellNotEditableError, DraftValidationError, RemoteStoreError
from .notifications import Notification, Notifier
from .remote_store import RemoteStore, ApiRemoteStore, TABLE_ROUTES
from .mirror import LocalMirror, CellValue, MirrorSnapshot
from .session import EditSession, EditState, EditTrigger
from .committer import OptimisticCommitter
from .media_plan import MediaPlanGrid, month_window, parse_quantity, UNCATEGORIZED
from .document_urls import DocumentUrlCache

__all__ = [
    "GridError",
    "CellNotEditableError",
    "DraftValidationError",
    "RemoteStoreError",
    "Notification",
    "Notifier",
    "RemoteStore",
    "ApiRemoteStore",
    "TABLE_ROUTES",
    "LocalMirror",
    "CellValue",
    "MirrorSnapshot",
    "EditSession",
    "EditState",
    "EditTrigger",
    "OptimisticCommitter",
    "MediaPlanGrid",
    "month_window",
    "parse_quantity",
    "UNCATEGORIZED",
    "DocumentUrlCache",
]
