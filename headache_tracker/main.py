from __future__ import annotations
import logging
import urllib.parse as up
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import Depends, FastAPI, Form, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from headache_tracker.config import get_settings
from headache_tracker.db import create_db_and_tables, get_session
from headache_tracker.repositories.credentials import SqlCredentialStore
from headache_tracker.services.api import ApiError, HeadacheApi, is_authenticated, store_tokens
from headache_tracker.services.dashboard import Dashboard
from headache_tracker.services.location import BrowserPosition, GeolocationResolver
from headache_tracker.services.validators import parse_float
from headache_tracker.services.weather import current_summary, series, series_bounds, sparkline_points

BASE_DIR = Path(__file__).parent

settings = get_settings()

app = FastAPI(title="Headache Tracker")

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

@app.on_event("startup")
def on_startup():
    create_db_and_tables()


@app.middleware("http")
async def ensure_browser_id(request: Request, call_next):
    # Credentials are stored per browser, keyed by this cookie.
    cookie = settings.SESSION_COOKIE
    browser_id = request.cookies.get(cookie)
    issued = not browser_id
    if issued:
        browser_id = uuid4().hex
    request.state.browser_id = browser_id
    response = await call_next(request)
    if issued:
        response.set_cookie(cookie, browser_id, httponly=True, samesite="lax")
    return response


def get_store(request: Request):
    return SqlCredentialStore(get_session, request.state.browser_id)

def get_api(store=Depends(get_store)) -> HeadacheApi:
    return HeadacheApi(settings.API_BASE_URL, store, timeout=settings.API_TIMEOUT)

def get_resolver() -> GeolocationResolver:
    return GeolocationResolver()

def get_dashboard(
    api: HeadacheApi = Depends(get_api),
    store=Depends(get_store),
    resolver: GeolocationResolver = Depends(get_resolver),
) -> Dashboard:
    return Dashboard(
        api,
        store,
        page_size=settings.RECORDS_PAGE_SIZE,
        hourly_size=settings.HOURLY_SLICE_SIZE,
        resolver=resolver,
    )


def _redirect(url: str):
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)

def _render_dashboard(request: Request, dash: Dashboard, status_code: int = 200):
    if dash.redirect:
        return _redirect(dash.redirect)

    charts = {}
    for metric in ("temperature", "humidity", "pressure"):
        values = series(dash.hourly, metric)
        charts[metric] = {"points": sparkline_points(values), "bounds": series_bounds(values)}

    ctx = {
        "request": request,
        "dash": dash,
        "profile": dash.profile,
        "profile_form": dash.profile_form,
        "record_form": dash.record_form,
        "weather": dash.weather,
        "weather_message": (dash.weather or {}).get("message"),
        "current": current_summary(dash.weather),
        "hourly": dash.hourly,
        "charts": charts,
        "location_status": dash.location_status,
    }
    return templates.TemplateResponse(request, "dashboard.html", ctx, status_code=status_code)

async def _load(dash: Dashboard, page: int) -> bool:
    if not await dash.load():
        return False
    if page > 1:
        await dash.go_to_page(page)
    return True


@app.get("/", response_class=HTMLResponse)
async def index(request: Request, store=Depends(get_store)):
    """
    Landing page; signed-in users go straight to the dashboard.
    """
    if is_authenticated(store):
        return _redirect("/dashboard")
    return templates.TemplateResponse(request, "index.html", {"request": request})


@app.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, store=Depends(get_store)):
    if is_authenticated(store):
        return _redirect("/dashboard")
    return templates.TemplateResponse(request, "login.html", {"request": request})


@app.post("/login", response_class=HTMLResponse)
async def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    api: HeadacheApi = Depends(get_api),
    store=Depends(get_store),
):
    try:
        tokens = await api.login(email.strip(), password)
    except ApiError as e:
        logger.info("Login failed for %r: %s", email, e)
        return templates.TemplateResponse(
            request, "login.html",
            {"request": request, "email": email, "error": e.server_message or "Login failed"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    store_tokens(store, tokens)
    return _redirect("/dashboard")


@app.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request, store=Depends(get_store)):
    if is_authenticated(store):
        return _redirect("/dashboard")
    return templates.TemplateResponse(request, "signup.html", {"request": request})


@app.post("/signup", response_class=HTMLResponse)
async def signup(
    request: Request,
    name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    api: HeadacheApi = Depends(get_api),
    store=Depends(get_store),
):
    try:
        tokens = await api.sign_up(email.strip(), password, name.strip())
    except ApiError as e:
        logger.info("Sign up failed for %r: %s", email, e)
        return templates.TemplateResponse(
            request, "signup.html",
            {"request": request, "name": name, "email": email, "error": e.server_message or "Sign up failed"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    store_tokens(store, tokens)
    return _redirect("/dashboard")


@app.post("/logout")
async def logout(dash: Dashboard = Depends(get_dashboard)):
    await dash.logout()
    return _redirect(dash.redirect)


@app.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    page: int = Query(1, ge=1),
    dash: Dashboard = Depends(get_dashboard),
):
    await _load(dash, page)
    return _render_dashboard(request, dash)


@app.post("/profile", response_class=HTMLResponse)
async def save_profile(
    request: Request,
    name: str = Form(""),
    city: str = Form(""),
    state: str = Form(""),
    country: str = Form(""),
    latitude: str = Form(""),
    longitude: str = Form(""),
    page: int = Form(1),
    dash: Dashboard = Depends(get_dashboard),
):
    if not await _load(dash, page):
        return _render_dashboard(request, dash)

    form = dash.profile_form
    form.name, form.city, form.state, form.country = name, city, state, country
    form.latitude, form.longitude = latitude, longitude

    ok = await dash.save_profile()
    return _render_dashboard(request, dash, 200 if ok else status.HTTP_400_BAD_REQUEST)


@app.post("/profile/locate", response_class=HTMLResponse)
async def locate(
    request: Request,
    name: str = Form(""),
    city: str = Form(""),
    state: str = Form(""),
    country: str = Form(""),
    latitude: str = Form(""),
    longitude: str = Form(""),
    supported: bool = Form(True),
    fix_latitude: str = Form(""),
    fix_longitude: str = Form(""),
    error_code: str = Form(""),
    page: int = Form(1),
    dash: Dashboard = Depends(get_dashboard),
):
    """
    Receives the browser's one-shot position (or its error code) and fills
    the profile form with it. Nothing is saved here.
    """
    if not await _load(dash, page):
        return _render_dashboard(request, dash)

    # Keep whatever the user had typed before asking for the location.
    form = dash.profile_form
    form.name, form.city, form.state, form.country = name, city, state, country
    form.latitude, form.longitude = latitude, longitude

    source = None
    if supported:
        code = error_code.strip()
        source = BrowserPosition(
            parse_float(fix_latitude),
            parse_float(fix_longitude),
            int(code) if code.isdigit() else None,
        )
    await dash.use_current_location(source)
    return _render_dashboard(request, dash)


@app.post("/records", response_class=HTMLResponse)
async def save_record(
    request: Request,
    date: str = Form(""),
    had_headache: Optional[str] = Form(None),
    headache_start_time: str = Form(""),
    headache_end_time: str = Form(""),
    went_outside_yesterday: Optional[str] = Form(None),
    drank_water_yesterday: Optional[str] = Form(None),
    notes: str = Form(""),
    page: int = Form(1),
    dash: Dashboard = Depends(get_dashboard),
):
    if not await _load(dash, page):
        return _render_dashboard(request, dash)

    form = dash.record_form
    form.date = date or dash.today
    form.had_headache = had_headache is not None
    form.headache_start_time = headache_start_time
    form.headache_end_time = headache_end_time
    form.went_outside_yesterday = went_outside_yesterday is not None
    form.drank_water_yesterday = drank_water_yesterday is not None
    form.notes = notes

    ok = await dash.save_record()
    return _render_dashboard(request, dash, 200 if ok else status.HTTP_400_BAD_REQUEST)


@app.post("/records/{record_id}/delete", response_class=HTMLResponse)
async def delete_record(
    request: Request,
    record_id: str,
    page: int = Form(1),
    dash: Dashboard = Depends(get_dashboard),
):
    if not await _load(dash, page):
        return _render_dashboard(request, dash)

    if not await dash.delete_record(record_id):
        return _render_dashboard(request, dash, status.HTTP_400_BAD_REQUEST)

    url = "/dashboard?" + up.urlencode({"page": str(dash.current_page)})
    return _redirect(url)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("headache_tracker.main:app", host="127.0.0.1", port=8000, reload=True)
