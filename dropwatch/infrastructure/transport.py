# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import os
import posixpath
import socket
from typing import Optional

import paramiko

from ..core.config import TransferConfigEntry

logger = logging.getLogger(__name__)


class TransferError(Exception):
    """A single transfer attempt failed; trying again may help."""


class PermanentTransferError(TransferError):
    """Retrying cannot help, e.g. the key cannot be read or the server rejects the login."""


class Transport:
    """
    Pushes one local file into a remote directory. Implementations return a
    short result label and raise TransferError on failure.
    """

    def push(self, local_path: str, remote_dir: str, entry: TransferConfigEntry) -> str:
        raise NotImplementedError


class LocalTransport(Transport):
    """Nothing leaves the machine; only the post-action applies."""

    def push(self, local_path: str, remote_dir: str, entry: TransferConfigEntry) -> str:
        logger.info(f"Local transfer for {local_path}: nothing to send")
        return "local"


class SftpTransport(Transport):
    KEY_TYPES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    def push(self, local_path: str, remote_dir: str, entry: TransferConfigEntry) -> str:
        pkey = self.load_private_key(entry) if entry.private_key else None

        client = paramiko.SSHClient()
        if entry.known_hosts:
            try:
                client.load_host_keys(str(entry.known_hosts))
            except (OSError, paramiko.SSHException) as e:
                client.close()
                raise PermanentTransferError(f"unable to load known_hosts {entry.known_hosts}: {e}") from e
            client.set_missing_host_key_policy(paramiko.RejectPolicy())
        else:
            client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        remote_path = posixpath.join(remote_dir, os.path.basename(local_path))
        try:
            client.connect(
                hostname=entry.server,
                port=entry.port,
                username=entry.username,
                password=entry.password,
                pkey=pkey,
                timeout=self.timeout,
                banner_timeout=self.timeout,
                auth_timeout=self.timeout,
                look_for_keys=False,
                allow_agent=False,
            )
            sftp = client.open_sftp()
            try:
                sftp.put(local_path, remote_path)
            finally:
                sftp.close()
        except paramiko.AuthenticationException as e:
            raise PermanentTransferError(f"authentication failed for {entry.username}@{entry.server}: {e}") from e
        except (paramiko.SSHException, socket.error, EOFError) as e:
            raise TransferError(f"SFTP upload to {entry.server}:{remote_path} failed: {e}") from e
        finally:
            client.close()

        logger.debug(f"Uploaded {local_path} to {entry.server}:{remote_path}")
        return "success"

    def load_private_key(self, entry: TransferConfigEntry) -> paramiko.PKey:
        key_path = str(entry.private_key)
        if not os.access(key_path, os.R_OK):
            raise PermanentTransferError(f"unable to read private key: {key_path}")

        last_error: Optional[Exception] = None
        for key_type in self.KEY_TYPES:
            try:
                return key_type.from_private_key_file(key_path, password=entry.private_key_passphrase)
            except (paramiko.SSHException, ValueError) as e:
                last_error = e
            except OSError as e:
                raise PermanentTransferError(f"unable to read private key: {e}") from e
        raise PermanentTransferError(f"unable to parse private key {key_path}: {last_error}")
