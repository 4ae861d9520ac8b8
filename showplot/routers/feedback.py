import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from showplot.database import get_db
from showplot.models import Feedback
from showplot.schemas import FeedbackCreate, OkResponse
from showplot.users import require_authenticated_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


@router.post("", response_model=OkResponse, status_code=201)
async def submit_feedback(
    payload: FeedbackCreate,
    user=Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    message = (payload.message or "").strip()
    page = (payload.page or "").strip()
    if not message:
        raise HTTPException(status_code=400, detail="Missing message")

    db.add(
        Feedback(
            user_id=user.id,
            email=user.email or "",
            name=user.name or "",
            message=message,
            page=page,
        )
    )
    await db.commit()
    logger.info("Feedback from user %s on %r", user.id, page or "-")
    return OkResponse()


__all__ = ["router"]
