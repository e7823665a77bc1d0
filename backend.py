from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Dict, List, Optional
import sqlite3
import json

from tippool.config import Settings
from tippool.diagnostics import DiagnosticEvent
from tippool.errors import ConfigurationError, DateRangeMismatchError, StrandedTipsError, TipPoolError
from tippool.models import AllocationPolicy, EmployeeFinalTotal, IntervalAnchor
from tippool.pipeline import run_pipeline

settings = Settings()

app = FastAPI()

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # React dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Database setup
def init_db():
    conn = sqlite3.connect(settings.database_path)
    cursor = conn.cursor()
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS allocation_runs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            period_label TEXT,
            transaction_total REAL NOT NULL,
            interval_minutes INTEGER NOT NULL,
            boh_ratio REAL NOT NULL,
            policy TEXT NOT NULL,
            totals TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    conn.commit()
    conn.close()

# Initialize database on startup
init_db()

# Pydantic models
class AllocationRequest(BaseModel):
    clock_rows: List[Dict[str, str]]
    transactions: List[Dict[str, str]]
    interval_minutes: Optional[int] = None
    boh_ratio: Optional[float] = None
    policy: Optional[AllocationPolicy] = None
    anchor: Optional[IntervalAnchor] = None
    merge_shifts: Optional[bool] = None
    convert_timezone: Optional[bool] = None
    source_timezone: Optional[str] = None
    target_timezone: Optional[str] = None

class AllocationResponse(BaseModel):
    interval_minutes: int
    boh_ratio: float
    transaction_total: float
    allocated_total: float
    redistributed_total: float
    unallocated_by_day: Dict[str, float]
    totals: List[EmployeeFinalTotal]
    diagnostics: List[DiagnosticEvent]

class SaveRequest(BaseModel):
    period_label: Optional[str] = None
    transaction_total: float
    interval_minutes: int
    boh_ratio: float
    policy: AllocationPolicy = AllocationPolicy.FULL_FALLBACK
    totals: List[EmployeeFinalTotal]


def request_settings(request: AllocationRequest) -> Settings:
    """Server defaults overridden by whatever the request sets."""
    overrides = request.model_dump(exclude={'clock_rows', 'transactions'}, exclude_none=True)
    return settings.model_copy(update=overrides)


@app.get("/")
def read_root():
    return {"message": "Tip Pool Allocation API"}

@app.post("/allocate", response_model=AllocationResponse)
def allocate_tips(request: AllocationRequest):
    """
    Allocate pooled tips for the uploaded clock and transaction rows
    """
    if not request.clock_rows:
        raise HTTPException(status_code=400, detail="At least one clock row is required")

    try:
        result = run_pipeline(request.clock_rows, request.transactions, request_settings(request))
    except (ConfigurationError, DateRangeMismatchError, StrandedTipsError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TipPoolError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if not result.verification.passed:
        raise HTTPException(
            status_code=500,
            detail=f"Sanity check failed: allocated ${result.verification.actual:.2f}, "
                   f"transactions ${result.verification.expected:.2f}"
        )

    summary = result.summary()
    return AllocationResponse(
        interval_minutes=result.interval_minutes,
        boh_ratio=result.boh_ratio,
        transaction_total=summary['transaction_total'],
        allocated_total=summary['allocated_total'],
        redistributed_total=summary['redistributed_total'],
        unallocated_by_day=summary['unallocated_by_day'],
        totals=result.totals,
        diagnostics=result.diagnostics.events,
    )

@app.post("/save")
def save_run(request: SaveRequest):
    """
    Archive an allocation run
    """
    try:
        conn = sqlite3.connect(settings.database_path)
        cursor = conn.cursor()

        totals = [total.model_dump() for total in request.totals]

        cursor.execute('''
            INSERT INTO allocation_runs (period_label, transaction_total, interval_minutes, boh_ratio, policy, totals)
            VALUES (?, ?, ?, ?, ?, ?)
        ''', (
            request.period_label,
            request.transaction_total,
            request.interval_minutes,
            request.boh_ratio,
            request.policy.value,
            json.dumps(totals),
        ))

        conn.commit()
        record_id = cursor.lastrowid
        conn.close()

        return {
            "id": record_id,
            "message": "Allocation run saved successfully"
        }
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Error saving to database: {str(e)}")

@app.get("/history")
def get_history(limit: int = 10):
    """
    Get archived allocation runs, newest first
    """
    try:
        conn = sqlite3.connect(settings.database_path)
        cursor = conn.cursor()

        cursor.execute('''
            SELECT id, period_label, transaction_total, interval_minutes, boh_ratio, policy, totals, created_at
            FROM allocation_runs
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        ''', (limit,))

        rows = cursor.fetchall()
        conn.close()

        history = []
        for row in rows:
            history.append({
                "id": row[0],
                "period_label": row[1],
                "transaction_total": row[2],
                "interval_minutes": row[3],
                "boh_ratio": row[4],
                "policy": row[5],
                "totals": json.loads(row[6]),
                "created_at": row[7]
            })

        return history
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Error retrieving history: {str(e)}")

@app.delete("/history/{record_id}")
def delete_record(record_id: int):
    """
    Delete an archived allocation run
    """
    try:
        conn = sqlite3.connect(settings.database_path)
        cursor = conn.cursor()

        cursor.execute('DELETE FROM allocation_runs WHERE id = ?', (record_id,))

        if cursor.rowcount == 0:
            conn.close()
            raise HTTPException(status_code=404, detail="Record not found")

        conn.commit()
        conn.close()

        return {"message": "Record deleted successfully"}
    except HTTPException:
        raise
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Error deleting record: {str(e)}")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
