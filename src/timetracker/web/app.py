"""FastAPI application for the timetracker web view."""

from pathlib import Path
from typing import Annotated, Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from .. import date_time
from ..aggregator import Aggregator
from ..errors import TrackerError
from ..models import Session, TrackerConfig
from ..store import SessionStore

WEB_DIR = Path(__file__).parent
TEMPLATES_DIR = WEB_DIR / "templates"

app = FastAPI(title="timetracker", description="Work sessions kept as markdown files")

templates = Jinja2Templates(directory=TEMPLATES_DIR)


def get_store() -> SessionStore:
    """Dependency to get the session store."""
    try:
        store = SessionStore(TrackerConfig.load().sessions_path)
        store.ensure_initialized()
    except (TrackerError, FileNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    return store


StoreDep = Annotated[SessionStore, Depends(get_store)]


def get_aggregator(store: StoreDep) -> Aggregator:
    """Dependency to get an aggregator over every stored session."""
    try:
        return Aggregator.from_sessions(store.load_all())
    except TrackerError as e:
        raise HTTPException(status_code=404, detail=str(e))


AggregatorDep = Annotated[Aggregator, Depends(get_aggregator)]


def session_row(session: Session) -> dict[str, Any]:
    """Flatten a session for the sessions table."""
    return {
        "name": session.path.name if session.path else "",
        "start": date_time.format(session.start()),
        "end": date_time.format(session.end()),
        "time": date_time.get_time_hr(session.get_time()),
        "marks": len(session.marks),
        "active": session.is_active(),
    }


# --- Page Routes ---


@app.get("/", response_class=RedirectResponse)
async def root():
    """Redirect to the summary."""
    return RedirectResponse(url="/summary", status_code=302)


@app.get("/summary", response_class=HTMLResponse)
async def summary_page(request: Request, aggregator: AggregatorDep):
    """Current session and week figures."""
    return templates.TemplateResponse(
        request,
        "summary.html",
        {"summary": aggregator.summary()},
    )


@app.get("/sessions", response_class=HTMLResponse)
async def sessions_page(request: Request, aggregator: AggregatorDep):
    """Every session, newest first."""
    rows = [session_row(s) for s in reversed(aggregator.sessions)]
    return templates.TemplateResponse(
        request,
        "sessions.html",
        {"sessions": rows},
    )


# --- JSON Routes ---


@app.get("/api/summary")
async def summary_api(aggregator: AggregatorDep):
    """Current session and week figures as JSON."""
    return aggregator.summary().to_dict()


@app.get("/api/sessions")
async def sessions_api(aggregator: AggregatorDep):
    """Every session with its marks, oldest first."""
    return [
        {**session.to_dict(), "time": date_time.get_time_hr(session.get_time())}
        for session in aggregator.sessions
    ]
