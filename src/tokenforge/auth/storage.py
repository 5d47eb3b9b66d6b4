"""Reference stores for clients, authorization codes and users.

In-memory stores serve tests and single-process deployments. The file store
keeps one JSON document per entity on disk so registrations and codes survive
restarts. Both redeem authorization codes with a single atomic step.
"""

import asyncio
import hashlib
import logging
import os
import secrets
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from tokenforge.auth.models import AuthorizationGrant, Client
from tokenforge.core.exceptions import StorageError

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class StoredUser(BaseModel):
    """Resource owner account."""

    subject_id: str
    username: str
    password_hash: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


async def verify_user(user: StoredUser | None, password: str) -> str | None:
    """Check a password off the event loop; unknown users cost the same time."""
    if user is None:
        await asyncio.to_thread(pwd_context.dummy_verify)
        return None
    if await asyncio.to_thread(pwd_context.verify, password, user.password_hash):
        return user.subject_id
    return None


def new_authorization_grant(
    subject_id: str,
    client: Client,
    now: int,
    scope: Sequence[str],
    nonce: str | None = None,
    redirect_uri: str | None = None,
    auth_time: int | None = None,
    code: str | None = None,
) -> AuthorizationGrant:
    return AuthorizationGrant(
        code=code or secrets.token_urlsafe(32),
        subject_id=subject_id,
        client_id=client.client_id,
        issued_at=now,
        scope=list(scope),
        nonce=nonce,
        redirect_uri=redirect_uri,
        auth_time=now if auth_time is None else auth_time,
    )


# ========== In-memory Stores ==========


class InMemoryClientStore:
    """Client registrations held in a dict."""

    def __init__(self, clients: Iterable[Client] = ()) -> None:
        self._clients: dict[str, Client] = {c.client_id: c for c in clients}

    async def get_client(self, client_id: str) -> Client | None:
        return self._clients.get(client_id)

    async def register_client(self, client: Client) -> None:
        if client.client_id in self._clients:
            msg = f"client_id already registered: {client.client_id}"
            raise ValueError(msg)
        self._clients[client.client_id] = client
        logger.info("Registered client: %s", client.client_id)


class InMemoryAuthorizationCodeStore:
    """Authorization codes held in a dict, consumed under a lock."""

    def __init__(self) -> None:
        self._grants: dict[str, AuthorizationGrant] = {}
        self._lock = asyncio.Lock()

    async def create_authorization(
        self,
        subject_id: str,
        client: Client,
        now: int,
        scope: Sequence[str],
        nonce: str | None = None,
        redirect_uri: str | None = None,
        auth_time: int | None = None,
        code: str | None = None,
    ) -> str:
        """Record a grant issued by the authorization endpoint and return its code."""
        grant = new_authorization_grant(
            subject_id, client, now, scope, nonce, redirect_uri, auth_time, code
        )
        async with self._lock:
            if grant.code in self._grants:
                msg = "Authorization code already exists"
                raise ValueError(msg)
            self._grants[grant.code] = grant
        return grant.code

    async def load_and_consume(self, code: str) -> AuthorizationGrant | None:
        async with self._lock:
            return self._grants.pop(code, None)


class InMemoryUserStore:
    """Resource owners with bcrypt password hashes."""

    def __init__(self) -> None:
        self._users: dict[str, StoredUser] = {}

    def create_user(self, subject_id: str, username: str, password: str) -> StoredUser:
        user = StoredUser(
            subject_id=subject_id,
            username=username,
            password_hash=hash_password(password),
        )
        self._users[username] = user
        return user

    async def authenticate(self, username: str, password: str) -> str | None:
        return await verify_user(self._users.get(username), password)


# ========== File Storage ==========


class FileOAuthStorage:
    """Clients, authorization codes and users stored as JSON files.

    File names are the SHA-256 digest of the key, so any client_id, code or
    username maps to its own fixed-length name inside the store directory.

    A code is consumed by renaming its file to a name unique to the caller
    before reading it. ``os.replace`` is atomic, so of two concurrent
    redemptions only one finds the file.
    """

    def __init__(self, storage_dir: str | Path = ".oauth_storage") -> None:
        self._storage_dir = Path(storage_dir)
        self._storage_dir.mkdir(parents=True, exist_ok=True)

        self._clients_dir = self._storage_dir / "clients"
        self._auth_codes_dir = self._storage_dir / "auth_codes"
        self._users_dir = self._storage_dir / "users"

        for dir_path in [self._clients_dir, self._auth_codes_dir, self._users_dir]:
            dir_path.mkdir(exist_ok=True)

        logger.info("Initialized FileOAuthStorage at %s", self._storage_dir)

    def _get_file_path(self, directory: Path, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return directory / f"{digest}.json"

    def _load(self, file_path: Path, model: type[Any]) -> Any:
        try:
            return model.model_validate_json(file_path.read_text())
        except (OSError, ValidationError) as e:
            msg = f"Failed to read {file_path.name}: {e}"
            raise StorageError(msg) from e

    def _read_entity(self, directory: Path, key: str, model: type[Any]) -> Any | None:
        file_path = self._get_file_path(directory, key)
        if not file_path.exists():
            return None
        return self._load(file_path, model)

    def _write_entity(self, directory: Path, key: str, entity: BaseModel) -> None:
        file_path = self._get_file_path(directory, key)
        tmp_path = file_path.with_name(f"{file_path.name}.{secrets.token_hex(8)}.tmp")
        try:
            tmp_path.write_text(entity.model_dump_json(indent=2))
            os.replace(tmp_path, file_path)
        except OSError as e:
            msg = f"Failed to write {file_path.name}: {e}"
            raise StorageError(msg) from e

    # ========== Client Management ==========

    async def get_client(self, client_id: str) -> Client | None:
        return self._read_entity(self._clients_dir, client_id, Client)

    async def register_client(self, client: Client) -> None:
        self._write_entity(self._clients_dir, client.client_id, client)
        logger.info("Registered client: %s", client.client_id)

    # ========== Authorization Codes ==========

    async def create_authorization(
        self,
        subject_id: str,
        client: Client,
        now: int,
        scope: Sequence[str],
        nonce: str | None = None,
        redirect_uri: str | None = None,
        auth_time: int | None = None,
        code: str | None = None,
    ) -> str:
        grant = new_authorization_grant(
            subject_id, client, now, scope, nonce, redirect_uri, auth_time, code
        )
        self._write_entity(self._auth_codes_dir, grant.code, grant)
        return grant.code

    async def load_and_consume(self, code: str) -> AuthorizationGrant | None:
        file_path = self._get_file_path(self._auth_codes_dir, code)
        claimed = file_path.with_name(f"{file_path.name}.{secrets.token_hex(8)}.consumed")
        try:
            os.replace(file_path, claimed)
        except FileNotFoundError:
            return None
        except OSError as e:
            msg = f"Failed to consume authorization code: {e}"
            raise StorageError(msg) from e

        try:
            return self._load(claimed, AuthorizationGrant)
        finally:
            claimed.unlink(missing_ok=True)

    # ========== Users ==========

    async def create_user(self, subject_id: str, username: str, password: str) -> StoredUser:
        user = StoredUser(
            subject_id=subject_id,
            username=username,
            password_hash=hash_password(password),
        )
        self._write_entity(self._users_dir, username, user)
        return user

    async def authenticate(self, username: str, password: str) -> str | None:
        return await verify_user(
            self._read_entity(self._users_dir, username, StoredUser), password
        )
