import logging
from typing import Iterator

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

import config as cfg
from llm import InvalidModelOutput, LanguageModelClient, LanguageModelError
from optimizer import optimize
from schemas import (
    ExplainRequest,
    ExplainResponse,
    OptimizeRequest,
    ParseRequest,
    ParseResponse,
    Plan,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Loan Mix Optimizer")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cfg.ALLOWED_ORIGINS,
    allow_credentials="*" not in cfg.ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_llm_client() -> Iterator[LanguageModelClient]:
    client = LanguageModelClient()
    try:
        yield client
    finally:
        client.close()


@app.post("/api/optimize", response_model=Plan)
def api_optimize(req: OptimizeRequest):
    try:
        return optimize(req.target, req.loans, mode=req.mode, amortize=req.amortize)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/parse", response_model=ParseResponse)
def api_parse(req: ParseRequest, client: LanguageModelClient = Depends(get_llm_client)):
    if not req.text.strip():
        raise HTTPException(status_code=400, detail="Supply a non-empty 'text' string.")
    try:
        return client.extract_offers(req.text)
    except InvalidModelOutput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except LanguageModelError as e:
        logger.warning(f"Parse failed: {e}")
        raise HTTPException(status_code=502, detail="Upstream AI error. Try again later.")


@app.post("/api/explain", response_model=ExplainResponse)
def api_explain(req: ExplainRequest, client: LanguageModelClient = Depends(get_llm_client)):
    try:
        text = client.explain_plan(req.plan)
    except LanguageModelError as e:
        logger.warning(f"Explain failed: {e}")
        raise HTTPException(status_code=502, detail="Explanation unavailable right now. Your plan is unchanged.")
    return ExplainResponse(explanation=text)


@app.get("/")
def read_root():
    return {"message": "Loan Mix Optimizer Backend"}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=cfg.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=cfg.PORT)
