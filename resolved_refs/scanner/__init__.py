"""Scan orchestration: per-buffer debounced scans and workspace scans."""

from .session import (
    NullRenderer,
    RecordingRenderer,
    Renderer,
    ScanSession,
    ScanTarget,
    TargetState,
    build_annotations,
)
from .workspace import (
    FileListingError,
    ProgressThrottle,
    WorkspaceReport,
    WorkspaceScanner,
    build_issue_groups,
    group_by_url,
    list_tracked_files,
    scan_file,
)

__all__ = [
    "FileListingError",
    "NullRenderer",
    "ProgressThrottle",
    "RecordingRenderer",
    "Renderer",
    "ScanSession",
    "ScanTarget",
    "TargetState",
    "WorkspaceReport",
    "WorkspaceScanner",
    "build_annotations",
    "build_issue_groups",
    "group_by_url",
    "list_tracked_files",
    "scan_file",
]
