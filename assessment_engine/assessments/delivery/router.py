"""
Session API Router

HTTP endpoints for taking an assessment: open a session, answer questions,
move between them, look at the summary and submit. Engine errors propagate to
the application's exception handlers, which map them to status codes.
"""

from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, ConfigDict, Field, model_validator

from assessment_engine.api import APIResponse
from assessment_engine.assessments.delivery.manager import SessionManager, get_session_manager
from assessment_engine.common.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


class CreateSessionRequest(BaseModel):
    assessment_id: str = Field(..., min_length=1)
    preview: bool = False


class AnswerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answer_data: Dict[str, Any] = Field(..., alias="answerData")


class NavigationRequest(BaseModel):
    action: Literal["previous", "next", "jump"]
    index: Optional[int] = None

    @model_validator(mode="after")
    def require_index_for_jump(self):
        if self.action == "jump" and self.index is None:
            raise ValueError("'index' is required for a jump")
        return self


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_session(
    request: CreateSessionRequest,
    manager: SessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    """Open a session on an assessment."""
    session = await manager.create(request.assessment_id, preview=request.preview)
    return APIResponse.success(session.view(), message="Session created")


@router.get("/{session_id}")
async def get_session(
    session_id: str = Path(...),
    manager: SessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    return APIResponse.success(manager.get(session_id).view())


@router.put("/{session_id}/answers/{question_id}")
async def update_answer(
    request: AnswerRequest,
    session_id: str = Path(...),
    question_id: str = Path(...),
    manager: SessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    """Apply an ``answerData`` payload through the question's editor."""
    session = manager.get(session_id)
    answer = session.apply_answer(question_id, request.answer_data)
    return APIResponse.success({
        "question_id": question_id,
        "answer": answer.to_wire() if answer else None,
        "question": session.editor(question_id).render()
    }, message="Answer saved")


@router.post("/{session_id}/navigation")
async def navigate(
    request: NavigationRequest,
    session_id: str = Path(...),
    manager: SessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    session = manager.get(session_id)
    if request.action == "previous":
        session.previous()
    elif request.action == "next":
        session.next()
    else:
        session.jump_to(request.index)
    return APIResponse.success(session.view())


@router.post("/{session_id}/submit")
async def submit_session(
    session_id: str = Path(...),
    manager: SessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    """Submit the attempt; blocked submissions answer 422 with the missing questions."""
    session = manager.get(session_id)
    outcome = await session.submit()
    return APIResponse.success(outcome.to_dict(), message="Assessment submitted")


@router.get("/{session_id}/summary")
async def get_summary(
    session_id: str = Path(...),
    manager: SessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    return APIResponse.success(manager.get(session_id).summary().to_dict())


@router.delete("/{session_id}")
async def delete_session(
    session_id: str = Path(...),
    manager: SessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    """Abandon a session. Nothing is submitted."""
    await manager.remove(session_id)
    logger.info(f"Session {session_id} deleted")
    return APIResponse.success({"session_id": session_id}, message="Session deleted")
