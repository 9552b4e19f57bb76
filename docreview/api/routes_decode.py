from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from docreview.services.decode import decode, is_error

router = APIRouter(tags=["decode"])


class DecodeRequest(BaseModel):
    raw: str


@router.post("/decode")
def decode_raw(body: DecodeRequest):
    decoded = decode(body.raw)
    if is_error(decoded):
        raise HTTPException(status_code=422, detail={"error": decoded.model_dump(mode="json")})
    return decoded.to_dict()
