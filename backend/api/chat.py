"""POST /api/chat — natural language question in, validated read-only answer out."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.engine import Engine

from api.deps import get_connection, get_engine, get_llm_client
from core.chat_agent import handle_chat
from core.query_generator import CompletionClient
from models.chat import ChatRequest, ChatResponse, ErrorResponse
from models.connection import ConnectionRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
def chat(
    req: ChatRequest,
    engine: Engine = Depends(get_engine),
    client: CompletionClient = Depends(get_llm_client),
    conn_req: ConnectionRequest = Depends(get_connection),
):
    logger.info("Chat question: %s", req.message[:80])
    # Pipeline errors propagate to the DBQueryError handler in main.py
    return handle_chat(req, engine, client, conn_req)
