"""Per-request dependencies: connection settings, engine, completion client."""
from typing import Iterator

from fastapi import Depends
from sqlalchemy.engine import Engine

from config import settings
from core.db_connector import create_engine_from_request
from integrations.openai_client import OpenAIClient
from models.connection import ConnectionRequest


def get_connection() -> ConnectionRequest:
    return ConnectionRequest.from_settings(settings)


def get_engine(conn_req: ConnectionRequest = Depends(get_connection)) -> Iterator[Engine]:
    engine = create_engine_from_request(conn_req)
    try:
        yield engine
    finally:
        engine.dispose()


def get_llm_client() -> Iterator[OpenAIClient]:
    with OpenAIClient(settings) as client:
        yield client
