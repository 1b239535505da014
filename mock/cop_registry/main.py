from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from pathlib import Path
import difflib
import json
import os
import re

app = FastAPI(title="Mock CoP Registry", version="1.0.0")
# Support both local development and Docker
DATA_DIR = Path("/cop_stub") if os.path.exists("/cop_stub") else Path(__file__).resolve().parents[1] / "cop_stub"


class CopCheck(BaseModel):
    sort_code: str
    account_number: str
    name: str


def normalise(name: str) -> str:
    return re.sub(r"[^a-z0-9\s]", "", name.strip().lower())


def load_accounts() -> dict:
    return json.loads((DATA_DIR / "accounts.json").read_text())


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/cop/check")
def check(body: CopCheck):
    holder = load_accounts().get(f"{body.sort_code}/{body.account_number}")
    if holder is None:
        raise HTTPException(status_code=404, detail="account not found")
    if holder.get("unavailable"):
        raise HTTPException(status_code=503, detail="responding bank unavailable")

    provided, held = normalise(body.name), normalise(holder["name"])
    if provided == held:
        return {"result": "match", "matched_name": None}
    if difflib.SequenceMatcher(None, provided, held).ratio() >= 0.8:
        return {"result": "close_match", "matched_name": holder["name"]}
    return {"result": "no_match", "matched_name": holder["name"]}
