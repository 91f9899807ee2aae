import hashlib
import logging
from typing import Optional

from fastapi import FastAPI, UploadFile, File, HTTPException, Query

from .decoding import decode_bytes
from .models import CsvParseError, ParseResponse, HealthResponse
from .parser import parse_document

logger = logging.getLogger(__name__)

app = FastAPI(
    title="csv-grammar",
    description="Strict parser for CSV with quoted and escaped fields",
    version="0.1.0",
)

@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}

@app.post("/parse", response_model=ParseResponse)
async def parse_csv(
    file: UploadFile = File(...),
    expected_rows: Optional[int] = Query(default=None, ge=0),
):
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=422, detail="Only CSV files are supported")

    raw = await file.read()
    try:
        decoded = decode_bytes(raw)
    except UnicodeDecodeError:
        raise HTTPException(status_code=422, detail="Could not decode file as text")

    try:
        document = parse_document(decoded.text, source=file.filename)
    except CsvParseError as exc:
        logger.info("rejected %s: %s", file.filename, exc)
        raise HTTPException(status_code=422, detail=exc.diagnostic.model_dump(mode="json"))

    return {
        "source": file.filename,
        "encoding": decoded.encoding,
        "sha256": hashlib.sha256(raw).hexdigest(),
        "row_count": document.row_count,
        "rows": [list(row) for row in document.rows],
        "matches_expected": None if expected_rows is None else document.row_count == expected_rows,
    }
