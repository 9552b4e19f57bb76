from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from docreview.services.review import review_document

router = APIRouter(tags=["review"])


class ReviewRequest(BaseModel):
    title: str = Field(..., description="Document title shown to the model")
    paragraphs: List[str] = Field(..., min_length=1, description="Paragraph texts in document order")
    instructions: Optional[str] = None


@router.post("/review")
def review(body: ReviewRequest):
    try:
        outcome = review_document(body.title, body.paragraphs, body.instructions)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {
        "result": outcome.result.to_dict(),
        "paragraphs": outcome.paragraphs,
        "error": outcome.error.model_dump(mode="json") if outcome.error else None,
    }
