# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import time
from typing import Callable, Dict, Optional
from dropwatch.core.config import TransferConfigEntry
from dropwatch.core.models import TransferResult, TransferStatus
from dropwatch.infrastructure.transport import (
    LocalTransport,
    PermanentTransferError,
    SftpTransport,
    TransferError,
    Transport,
)

logger = logging.getLogger(__name__)


class TransferExecutor:
    """
    Runs one transfer with a fixed retry policy: up to max_attempts tries,
    retry_delay seconds apart, no backoff. Permanent errors (bad key,
    rejected login) stop the loop early.
    """

    def __init__(self, transports: Optional[Dict[str, Transport]] = None,
                 max_attempts: int = 3, retry_delay: float = 2.0,
                 sleep: Callable[[float], None] = time.sleep):
        self.transports = transports if transports is not None else default_transports()
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep

    def execute(self, file_path: str, entry: TransferConfigEntry) -> TransferResult:
        kind = entry.kind
        transport = self.transports.get(kind)
        if transport is None:
            if kind == "scp":
                message = "SCP transfer not implemented"
            else:
                message = f"unsupported transfer type: {entry.transfer_type!r}"
            logger.warning(f"{message} ({file_path})")
            return TransferResult(status=TransferStatus.NOT_IMPLEMENTED, label="not implemented", error=message)

        last_error = None
        attempt = 0
        for attempt in range(1, self.max_attempts + 1):
            logger.info(f"Attempting {kind} upload of {file_path} (attempt {attempt}/{self.max_attempts})")
            try:
                label = transport.push(file_path, entry.remote_path, entry)
                return TransferResult(status=TransferStatus.SUCCESS, label=label, attempts=attempt)
            except PermanentTransferError as e:
                last_error = e
                logger.error(f"Upload of {file_path} failed permanently, not retrying: {e}")
                break
            except TransferError as e:
                last_error = e
                logger.warning(f"Upload attempt {attempt} for {file_path} failed: {e}")
            except Exception as e:
                last_error = e
                logger.warning(f"Upload attempt {attempt} for {file_path} raised {type(e).__name__}: {e}")

            if attempt < self.max_attempts:
                logger.info(f"Retrying {file_path} in {self.retry_delay}s")
                self._sleep(self.retry_delay)

        logger.error(f"Upload failed after {attempt} attempt(s) for {file_path}: {last_error}")
        return TransferResult(status=TransferStatus.FAILED, label="failed", error=str(last_error), attempts=attempt)


def default_transports(timeout: float = 10.0) -> Dict[str, Transport]:
    return {
        "sftp": SftpTransport(timeout=timeout),
        "local": LocalTransport(),
    }
