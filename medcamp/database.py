# medcamp/database.py
import json
import re
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Iterator

from fastapi import Depends
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from medcamp.core.config import Settings, get_settings

# Only plain identifiers can be interpolated into SET ROLE.
_ROLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# ---------------------------------------------------------
# Supabase Postgres connection (via pooler)
#
# - sslmode=require   : enforce SSL when running in the cloud
# - pool_size         : DB_POOL_SIZE connections to the Supabase pooler
# - max_overflow=0    : do not open extra connections beyond the pool
# - pool_pre_ping=True: validate connections before using them
# - statement_timeout : bound every store call; the core has no other timeout
#
# Each request holds one connection until its response is sent, so
# pool_size is also the number of requests that can use the store at once.
# Supabase Session mode limits the number of clients; with several backend
# processes, lower DB_POOL_SIZE or you can hit:
#   "MaxClientsInSessionMode: max clients reached"
# ---------------------------------------------------------


@lru_cache
def build_engine(
    database_url: str,
    statement_timeout_ms: int = 0,
    pool_size: int = 5,
) -> Engine:
    """
    Create the SQLAlchemy engine for `database_url`.

    Non-Postgres URLs (e.g. SQLite for local runs) get default pooling.
    """
    if not database_url.startswith("postgresql"):
        return create_engine(database_url, echo=False)

    db_url = database_url
    # Append sslmode=require if it is not already present
    if "sslmode=" not in db_url:
        if "?" in db_url:
            db_url = db_url + "&sslmode=require"
        else:
            db_url = db_url + "?sslmode=require"

    connect_args: dict[str, Any] = {}
    if statement_timeout_ms > 0:
        connect_args["options"] = f"-c statement_timeout={statement_timeout_ms}"

    return create_engine(
        db_url,
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=0,
        connect_args=connect_args,
    )


def get_engine(settings: Settings = Depends(get_settings)) -> Engine:
    """FastAPI dependency returning the shared engine for these settings."""
    return build_engine(
        settings.DATABASE_URL,
        settings.DB_STATEMENT_TIMEOUT_MS,
        settings.DB_POOL_SIZE,
    )


def create_db_and_tables(engine: Engine) -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def _scope_to_caller(session: Session, claims: dict[str, Any], role: str) -> None:
    """
    Make every transaction of `session` run as the authenticated caller.

    Supabase RLS policies read the caller from `request.jwt.claims`
    (`auth.uid()`), and only apply to non-superuser roles. Both settings
    are transaction-local, so they are re-applied on each BEGIN.
    """
    if not _ROLE_NAME.match(role):
        raise ValueError(f"Invalid RLS role name: {role!r}")

    claims_json = json.dumps(claims, default=str)
    sub = str(claims.get("sub", ""))

    @event.listens_for(session, "after_begin")
    def _apply_claims(_session, _transaction, connection):
        connection.execute(
            text(
                "select set_config('request.jwt.claims', :claims, true), "
                "set_config('request.jwt.claim.sub', :sub, true)"
            ),
            {"claims": claims_json, "sub": sub},
        )
        connection.execute(text(f'set local role "{role}"'))


@contextmanager
def open_session(
    engine: Engine,
    claims: dict[str, Any] | None = None,
    rls_role: str | None = None,
) -> Iterator[Session]:
    """
    Open a Session, scoped to the caller when `claims` and `rls_role` are
    given and the backend is PostgreSQL. Other dialects have no RLS and
    get a plain session.
    """
    with Session(engine) as session:
        if claims is not None and rls_role and engine.dialect.name == "postgresql":
            _scope_to_caller(session, claims, rls_role)
        yield session
