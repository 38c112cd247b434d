from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from totp_config import ConfigError, validate_config
from totp_utils import current_time_seconds, generate_code, seconds_remaining


app = FastAPI()


# ---------- Request models ----------

class GenerateRequest(BaseModel):
    config: Dict[str, Any]
    time: Optional[int] = Field(default=None, ge=0, strict=True)  # seconds since the Unix epoch; now if omitted


# ---------- Health check ----------

@app.get("/")
def health_check():
    return {"status": "ok"}


# ---------- API endpoints ----------

@app.post("/generate-totp")
def generate_totp(payload: GenerateRequest):
    """
    Generate the TOTP code for the given config at the requested time.
    Returns the code and how many seconds it remains valid.
    """
    try:
        config = validate_config(payload.config)
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=f"bad config: {e}")

    time_seconds = current_time_seconds() if payload.time is None else payload.time

    try:
        code = generate_code(config, time_seconds)
    except (ValueError, OverflowError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "code": code,
        "time": time_seconds,
        "valid_for": seconds_remaining(config, time_seconds),
    }
