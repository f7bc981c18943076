from __future__ import annotations

from fastapi import APIRouter, Depends

from symbiosis.core.pipeline.orchestrator import MemoryPipeline

from .deps import SessionHolder, get_pipeline, get_session_holder

router = APIRouter()


@router.post("/restore")
def restore_session(
    pipeline: MemoryPipeline = Depends(get_pipeline),
    holder: SessionHolder = Depends(get_session_holder),
) -> dict:
    with holder.lock:
        holder.session = pipeline.restore_session()
        return {
            "session_id": holder.session.session_id,
            "history": [turn.model_dump(mode="json") for turn in holder.session.history],
        }
