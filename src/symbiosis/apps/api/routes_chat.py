from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from symbiosis.core.memory.schemas import ChatTurn
from symbiosis.core.models.completion import CompletionFailed
from symbiosis.core.pipeline.orchestrator import MemoryPipeline
from symbiosis.core.pipeline.schemas import ChatSession

from .deps import SessionHolder, get_pipeline, get_session_holder

router = APIRouter()


class ChatCompletionRequest(BaseModel):
    message: str
    model_high: str
    model_low: str = ""
    question_mode: bool = False
    api_key: str | None = None
    history: list[ChatTurn] | None = None


def _bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.casefold() != "bearer" or not token.strip():
        return None
    return token.strip()


@router.post("/completions")
def chat_completions(
    request: ChatCompletionRequest,
    authorization: str | None = Header(default=None),
    pipeline: MemoryPipeline = Depends(get_pipeline),
    holder: SessionHolder = Depends(get_session_holder),
) -> dict:
    credential = request.api_key or _bearer(authorization)
    if not credential:
        raise HTTPException(status_code=401, detail="missing generation credential")

    with holder.lock:
        session = holder.session if request.history is None else ChatSession(history=list(request.history))
        try:
            return pipeline.process_chat(
                utterance=request.message,
                credential=credential,
                model_high=request.model_high,
                model_low=request.model_low,
                session=session,
                question_mode=request.question_mode,
            )
        except CompletionFailed as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
