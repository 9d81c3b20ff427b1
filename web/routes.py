"""
web/routes.py -- Jinja2 template routes for the MedMachines client.

These routes serve server-rendered HTML. They share app.state with the API
routes (same AuthService and MachineService) but return HTML and redirects
instead of JSON.

Two macro-states, decided per request by the access_token cookie:
  Unauthenticated -- login form, or registration form via the toggle link
  Authenticated   -- machine form, delete selector, detail panel

Authenticated page state lives in a ViewState (web/state.py) kept in
app.state.view_states under a random key stored in the signed session cookie.
Every POST applies one transition and redirects (303) back to /, so a reload
never repeats an action. Entering the authenticated state (login, or the
first visit of a session that already holds a valid cookie) fetches the
record list once; later fetches happen only after a save or delete.

Route registration order matters: the catch-all GET /{full_path:path} must be
the last route registered on the app (asgi.py includes this router last).

Routes:
  GET  /                  -- client entry page (either macro-state)
  GET  /login             -- login form
  POST /login             -- authenticate, set cookie, fetch, redirect /
  GET  /register          -- registration form
  POST /register          -- register, redirect /login?registered=1
  POST /logout            -- clear cookie and view state, redirect /login
  POST /machines/form     -- field edits + save / view_all / view_filtered / cancel / select
  POST /machines/delete   -- delete the selected record
  POST /machines/edit     -- load a record into the form (edit mode)
  GET  /{full_path:path}  -- anything else renders the entry page; unknown /api/* is a JSON 404
"""

import logging
import secrets
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import try_get_current_user
from auth.service import AuthService
from auth.tokens import set_auth_cookie
from core.config import get_settings
from core.errors import DuplicateUser, InvalidCredentials, MachineRegistryError, NotFound, ValidationError
from machines.service import MachineService
from web import state as vs
from web.state import ViewState, ViewStateStore
from web.taxonomy import Taxonomy, load_taxonomy

logger = logging.getLogger("medmachines.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

_ACTIONS = {"save", "view_all", "view_filtered", "cancel", "select"}

# Whitelist mapping for ?error= query params on /login. The raw query param
# is never passed to templates -- only the message from this dict is.
_ERROR_MESSAGES: dict[str, str] = {
    "invalid_credentials": "Invalid email or password.",
    "unavailable": "Login is unavailable right now. Please try again.",
}


def init_web_state(app: FastAPI) -> None:
    """Attach the taxonomy and view-state registry. Called from the ASGI lifespan."""
    settings = get_settings()
    app.state.taxonomy = load_taxonomy(settings.taxonomy_path)
    app.state.view_states = ViewStateStore(max_sessions=settings.max_view_sessions)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _view_key(request: Request) -> str:
    key = request.session.get("view_id")
    if not key:
        key = secrets.token_urlsafe(16)
        request.session["view_id"] = key
    return key


def _load(request: Request) -> ViewState:
    return request.app.state.view_states.get(_view_key(request))


def _store(request: Request, state: ViewState) -> None:
    request.app.state.view_states.put(_view_key(request), state)


def _failure(exc: MachineRegistryError, fallback: str) -> str:
    # Not-found and validation messages are specific enough to show as-is;
    # storage failures get the action's own wording.
    if isinstance(exc, (NotFound, ValidationError)):
        return exc.message
    return fallback


def _fetch(request: Request, state: ViewState) -> ViewState:
    service: MachineService = request.app.state.machine_service
    try:
        return vs.loaded(state, service.list_all())
    except MachineRegistryError as exc:
        logger.warning("Fetch for client view failed: %s", exc.message)
        return vs.failed(state, _failure(exc, "Failed to fetch machines."))


def _home_redirect() -> RedirectResponse:
    return RedirectResponse("/", status_code=303)


def _login_redirect() -> RedirectResponse:
    return RedirectResponse("/login", status_code=303)


# ---------------------------------------------------------------------------
# GET / -- client entry page
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    user = try_get_current_user(request)
    if user is None:
        return _render_login(request)

    state = _load(request)
    if not state.fetched:
        state = _fetch(request, state)
    taxonomy: Taxonomy = request.app.state.taxonomy
    response = templates.TemplateResponse(
        request,
        "machines.html",
        {
            "user": user,
            "state": state,
            "categories": taxonomy.category_names(),
            "type_options": taxonomy.types_for(state.category),
        },
    )
    _store(request, vs.acknowledge(state))
    return response


# ---------------------------------------------------------------------------
# Login / registration
# ---------------------------------------------------------------------------


def _render_login(request: Request, error_msg: Optional[str] = None) -> HTMLResponse:
    notice = "Registration successful. Please log in." if request.query_params.get("registered") else None
    return templates.TemplateResponse(request, "login.html", {"error_msg": error_msg, "notice": notice})


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request) -> HTMLResponse:
    if try_get_current_user(request) is not None:
        return RedirectResponse("/", status_code=302)
    error_msg = _ERROR_MESSAGES.get(request.query_params.get("error", ""))
    return _render_login(request, error_msg)


@router.post("/login", response_class=HTMLResponse)
def login_post(
    request: Request,
    email: str = Form(default=""),
    password: str = Form(default=""),
) -> RedirectResponse:
    """Handle the login form. Success enters the authenticated state and fetches once."""
    auth_service: AuthService = request.app.state.auth_service
    try:
        token = auth_service.login(email.strip(), password)
    except InvalidCredentials:
        return RedirectResponse("/login?error=invalid_credentials", status_code=303)
    except MachineRegistryError:
        return RedirectResponse("/login?error=unavailable", status_code=303)

    _store(request, _fetch(request, ViewState()))
    resp = _home_redirect()
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/register", response_class=HTMLResponse)
def register_form(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "register.html", {"error_msg": None, "email": ""})


@router.post("/register", response_class=HTMLResponse)
def register_post(
    request: Request,
    email: str = Form(default=""),
    password: str = Form(default=""),
) -> HTMLResponse:
    auth_service: AuthService = request.app.state.auth_service
    email = email.strip()
    try:
        auth_service.register(email, password)
    except (ValidationError, DuplicateUser) as exc:
        return templates.TemplateResponse(
            request, "register.html", {"error_msg": exc.message, "email": email}, status_code=400
        )
    except MachineRegistryError:
        return templates.TemplateResponse(
            request,
            "register.html",
            {"error_msg": "Registration failed. Please try again.", "email": email},
            status_code=500,
        )
    return RedirectResponse("/login?registered=1", status_code=303)


@router.post("/logout")
def logout(request: Request) -> RedirectResponse:
    """Clear the JWT cookie and this session's view state."""
    request.app.state.view_states.discard(_view_key(request))
    resp = _login_redirect()
    resp.delete_cookie("access_token")
    return resp


# ---------------------------------------------------------------------------
# Machine form actions
# ---------------------------------------------------------------------------


@router.post("/machines/form")
def machine_form(
    request: Request,
    category: str = Form(default=""),
    machine_type: str = Form(default=""),
    purpose: str = Form(default=""),
    action: str = Form(default="select"),
) -> RedirectResponse:
    """Apply the submitted field values, then run the pressed button's action."""
    if try_get_current_user(request) is None:
        return _login_redirect()

    taxonomy: Taxonomy = request.app.state.taxonomy
    state = _load(request)
    # In edit mode only purpose is editable; the selects are rendered disabled
    # and therefore not submitted.
    if not state.edit_mode:
        category_changed = category != state.category
        state = vs.select_category(state, category, taxonomy)
        if not category_changed:
            state = vs.select_type(state, machine_type, taxonomy)
    state = vs.set_purpose(state, purpose)

    if action not in _ACTIONS:
        logger.debug("Ignoring unknown form action %r", action)
    elif action == "save":
        state = _save(request, state)
    elif action == "view_all":
        state = vs.view_all(state)
    elif action == "view_filtered":
        state = vs.view_filtered(state)
    elif action == "cancel":
        state = vs.cancel(state)

    _store(request, state)
    return _home_redirect()


def _save(request: Request, state: ViewState) -> ViewState:
    prompt = vs.check_save(state)
    if prompt:
        return vs.prompted(state, prompt)

    service: MachineService = request.app.state.machine_service
    try:
        if state.edit_mode:
            service.update(state.edit_id, state.purpose)
        else:
            service.create(state.category, state.machine_type, state.purpose)
    except MachineRegistryError as exc:
        return vs.failed(state, _failure(exc, "Failed to save machine data."))
    return _fetch(request, vs.saved(state))


@router.post("/machines/delete")
def machine_delete(request: Request, machine_id: str = Form(default="")) -> RedirectResponse:
    if try_get_current_user(request) is None:
        return _login_redirect()

    state = vs.select_for_deletion(_load(request), machine_id)
    prompt = vs.check_delete(state)
    if prompt:
        state = vs.prompted(state, prompt)
    else:
        service: MachineService = request.app.state.machine_service
        try:
            service.delete(state.delete_id)
        except MachineRegistryError as exc:
            state = vs.failed(state, _failure(exc, "Failed to delete machine."))
        else:
            state = _fetch(request, vs.deleted(state))

    _store(request, state)
    return _home_redirect()


@router.post("/machines/edit")
def machine_edit(request: Request, machine_id: str = Form(default="")) -> RedirectResponse:
    if try_get_current_user(request) is None:
        return _login_redirect()
    _store(request, vs.begin_edit(_load(request), machine_id))
    return _home_redirect()


# ---------------------------------------------------------------------------
# Catch-all -- must stay last
# ---------------------------------------------------------------------------


@router.get("/{full_path:path}", response_class=HTMLResponse, include_in_schema=False)
def entry_point(request: Request, full_path: str) -> HTMLResponse:
    """Every other GET renders the client; unknown API paths stay JSON 404s."""
    if full_path == "api" or full_path.startswith("api/"):
        return JSONResponse(
            status_code=404,
            content={"error": {"code": "http_404", "message": "Not Found", "detail": None}},
        )
    return home(request)
