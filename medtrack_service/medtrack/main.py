from fastapi import FastAPI
from medtrack.core.logging_config import configure_logging
from medtrack.api.routes_medications import router as medications_router
from medtrack.api.routes_adherence import router as adherence_router
from medtrack.api.routes_calendar import router as calendar_router
from medtrack.api.routes_reminders import router as reminders_router

configure_logging()

app = FastAPI(title="Medication Adherence Tracker", version="1.0")

app.include_router(medications_router)
app.include_router(adherence_router)
app.include_router(calendar_router)
app.include_router(reminders_router)

@app.get("/health")
def health():
    return {"ok": True}
@app.get("/")
def root():
    return {"ok": True, "service": "Medication Adherence Tracker"}
