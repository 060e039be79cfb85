# Copyright (c) 2025 Trae AI. All rights reserved.

import time
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
from .config import TransferConfigEntry


class EventKind(Enum):
    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    OTHER = "other"


class TransferStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    NOT_IMPLEMENTED = "not_implemented"


class InFlightMarker(BaseModel):
    """
    Marks a path as owned by exactly one dispatch.
    """

    path: str
    enqueued_at: float = Field(default_factory=time.time)


class DispatchJob(BaseModel):
    path: str
    entry: Optional[TransferConfigEntry] = None
    enqueued_at: float = Field(default_factory=time.time)


class TransferResult(BaseModel):
    status: TransferStatus
    label: str = ""
    error: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.status is TransferStatus.SUCCESS


class JobRecord(BaseModel):
    """
    Outcome of one processed job, kept for the status API and heartbeat.
    """

    path: str
    entry_name: Optional[str] = None
    status: str
    label: str = ""
    error: Optional[str] = None
    attempts: int = 0
    action: Optional[str] = None
    action_error: Optional[str] = None
    finished_at: float = Field(default_factory=time.time)
