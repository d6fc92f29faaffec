"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_transfer_id: ContextVar[str] = ContextVar("transfer_id", default="")
_stage_name: ContextVar[str] = ContextVar("stage_name", default="")
_download_url: ContextVar[str] = ContextVar("download_url", default="")


def set_log_context(
    transfer_id: Optional[str] = None,
    stage: Optional[str] = None,
    download_url: Optional[str] = None,
) -> None:
    if transfer_id is not None:
        _transfer_id.set(transfer_id)
    if stage is not None:
        _stage_name.set(stage)
    if download_url is not None:
        _download_url.set(download_url)


def get_log_context() -> Dict[str, str]:
    return {
        "transfer_id": _transfer_id.get(),
        "stage": _stage_name.get(),
        "download_url": _download_url.get(),
    }


def clear_log_context() -> None:
    _transfer_id.set("")
    _stage_name.set("")
    _download_url.set("")
