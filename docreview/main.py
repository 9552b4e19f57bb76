from fastapi import FastAPI

from docreview.api.routes_decode import router as decode_router
from docreview.api.routes_review import router as review_router
from docreview.middleware.limits import BodySizeLimitMiddleware

app = FastAPI(title="docreview")

app.add_middleware(BodySizeLimitMiddleware)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(decode_router)
app.include_router(review_router)
