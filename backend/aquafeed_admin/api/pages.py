"""
Server-rendered admin pages.

Every resource page is the same list view rendered from its ResourceSpec;
mutations are plain form posts that redirect back to the list state they
were sent from.
"""

import logging
import math
from datetime import datetime
from itertools import zip_longest
from typing import Any, Iterable, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from aquafeed_admin.api.auth import clear_session_cookie, set_session_cookie
from aquafeed_admin.api.deps import (
    get_auth_service,
    get_dashboard_service,
    get_resource_service,
    get_session_id,
    require_admin,
)
from aquafeed_admin.api.views import ListView, flatten, templates
from aquafeed_admin.errors import AdminRequired, BackendError, FormValidationError
from aquafeed_admin.models.auth import SessionUser
from aquafeed_admin.services import aggregates
from aquafeed_admin.services.auth import AuthService, session_user
from aquafeed_admin.services.backend import error_message
from aquafeed_admin.services.dashboard import DashboardService
from aquafeed_admin.services.forms import PARSERS, can_submit_template, parse_config
from aquafeed_admin.services.resources import ResourceService, ResourceSpec, get_resource
from aquafeed_admin.services.selection import SelectionSet

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])

# Query parameters that open a modal or carry a one-off message.
TRANSIENT_PARAMS = {"edit", "confirm", "error", "notice", "rows"}
TEMPLATE_MIN_ROWS = 3


def _to_int(raw: Optional[str], default: Optional[int]) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def _spec_or_404(name: str) -> ResourceSpec:
    spec = get_resource(name)
    if spec is None:
        raise HTTPException(status_code=404, detail="Page not found")
    return spec


def _back_url(request: Request, spec: ResourceSpec, drop: Iterable[str] = (), **extra: str) -> str:
    """The list page a form was posted from, minus modals and deleted rows."""
    drop = set(drop)
    params = [
        (k, v)
        for k, v in request.query_params.multi_items()
        if k not in TRANSIENT_PARAMS and not (k in ("selected", "view") and v in drop)
    ]
    params.extend((k, v) for k, v in extra.items() if v)
    return f"/{spec.name}?{urlencode(params)}" if params else f"/{spec.name}"


def _list_query(request: Request, spec: ResourceSpec, service: ResourceService):
    qp = request.query_params
    return service.build_query(
        spec,
        search=qp.get("search", ""),
        filters={f.param: qp.get(f.param, "") for f in spec.filters},
        status=qp.get("status", ""),
        sort=qp.get("sort"),
        direction=qp.get("direction", "asc"),
        page=_to_int(qp.get("page"), 1),
        limit=_to_int(qp.get("limit"), None),
    )


def _posted_values(form) -> dict[str, Any]:
    """Posted form as field values, template lines regrouped into ``items``."""
    values: dict[str, Any] = {k: v for k, v in form.items() if not k.startswith("items.")}
    values["items"] = [
        {"ingredientId": ingredient_id, "ratio": ratio}
        for ingredient_id, ratio in zip_longest(
            form.getlist("items.ingredientId"), form.getlist("items.ratio"), fillvalue=""
        )
    ]
    return values


def _template_rows(
    values: dict[str, Any], requested: Optional[int]
) -> tuple[list[dict], Optional[float], bool]:
    """Item lines for the template form padded with blanks, their ratio total, and whether they can be saved."""
    rows = [dict(item) for item in values.get("items") or [] if isinstance(item, dict)]
    rows = [r for r in rows if r.get("ingredientId") or r.get("ratio") not in ("", None)]
    submittable = can_submit_template(rows)
    target = max(len(rows) + 1, TEMPLATE_MIN_ROWS, requested or 0)
    rows.extend({"ingredientId": "", "ratio": ""} for _ in range(target - len(rows)))
    try:
        total = sum(float(r.get("ratio") or 0) for r in rows)
    except (TypeError, ValueError):
        total = None
    if total is not None and not math.isfinite(total):
        total = None
    return rows, total, submittable


def _login(request: Request, step: str, email: str = "", error: str = "", notice: str = "", status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "login.html",
        {"step": step, "email": email, "error": error, "notice": notice},
        status_code=status_code,
    )


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, error: str = "", step: str = "email", email: str = ""):
    return _login(request, step if step in ("email", "otp") else "email", email, error)


@router.post("/login/send-otp", response_class=HTMLResponse)
async def login_send_otp(
    request: Request,
    email: str = Form(""),
    auth: AuthService = Depends(get_auth_service),
):
    email = email.strip()
    if not email:
        return _login(request, "email", email, "Email is required", status_code=400)
    try:
        result = await auth.request_otp(email)
    except BackendError as e:
        return _login(request, "email", email, e.message, status_code=502)
    if not result.ok:
        return _login(request, "email", email, error_message(result.data, "Failed to send OTP"), status_code=400)
    return _login(request, "otp", email, notice=f"We sent a code to {email}")


@router.post("/login/verify-otp", response_class=HTMLResponse)
async def login_verify_otp(
    request: Request,
    email: str = Form(""),
    otp: str = Form(""),
    auth: AuthService = Depends(get_auth_service),
):
    email, otp = email.strip(), otp.strip()
    try:
        result, session_id = await auth.verify_otp(email, otp)
    except BackendError as e:
        return _login(request, "otp", email, e.message, status_code=502)
    if not result.ok:
        return _login(request, "otp", email, error_message(result.data, "Invalid OTP"), status_code=400)

    user = session_user(result.data)
    if user is None or not user.is_admin:
        logger.warning("Non-admin login attempt by %s", email)
        await auth.logout(session_id)
        response = _login(request, "email", "", AdminRequired().message, status_code=403)
        clear_session_cookie(response)
        return response
    if not session_id:
        return _login(request, "otp", email, "Login failed: the backend did not start a session", status_code=502)

    logger.info("Admin %s logged in", email)
    response = _redirect("/")
    set_session_cookie(response, session_id)
    return response


@router.post("/logout")
async def logout(
    session_id: Optional[str] = Depends(get_session_id),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.logout(session_id)
    response = _redirect("/login")
    clear_session_cookie(response)
    return response


@router.get("/", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    user: SessionUser = Depends(require_admin),
    service: DashboardService = Depends(get_dashboard_service),
):
    overview = await service.overview()
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"user": user, "overview": overview, "today": datetime.now()},
    )


@router.get("/settings", response_class=HTMLResponse)
async def settings_page(request: Request, user: SessionUser = Depends(require_admin)):
    return templates.TemplateResponse(request, "settings.html", {"user": user})


async def _render_list(
    request: Request,
    spec: ResourceSpec,
    user: SessionUser,
    service: ResourceService,
    *,
    modal: Optional[str] = None,
    form_values: Optional[dict[str, Any]] = None,
    form_errors: Optional[dict[str, str]] = None,
    status_code: int = 200,
):
    qp = request.query_params
    query = _list_query(request, spec, service)
    selection = SelectionSet(qp.getlist("selected"))
    page = await service.list_page(spec, query, selection, include_form_options=True)

    drawer = page.find(qp.get("view"))
    modal = modal or qp.get("edit") or None
    editing = page.find(modal) if modal and modal != "new" else None
    if modal == "new" and not spec.can_create:
        modal = None
    elif modal and modal != "new" and (not spec.can_update or (editing is None and form_values is None)):
        modal = None

    if modal and form_values is None:
        form_values = flatten(editing.to_payload()) if editing is not None else {"isActive": True}
    form_items, ratio_sum, ratios_ready = _template_rows(form_values or {}, _to_int(qp.get("rows"), None))

    confirm = qp.get("confirm") or None
    confirm_row = page.find(confirm) if confirm and confirm != "bulk" else None
    if confirm == "bulk" and not (spec.can_bulk_delete and len(selection)):
        confirm = None
    elif confirm and confirm != "bulk" and (confirm_row is None or not spec.can_delete):
        confirm = None

    context: dict[str, Any] = {
        "user": user,
        "spec": spec,
        "page": page,
        "view": ListView(page, drawer_id=qp.get("view"), modal=modal),
        "drawer": drawer,
        "modal": modal,
        "editing": editing,
        "values": form_values or {},
        "form_errors": form_errors or {},
        "form_items": form_items,
        "ratio_sum": ratio_sum,
        "ratios_ready": ratios_ready,
        "confirm": confirm,
        "confirm_row": confirm_row,
        "error": page.error or qp.get("error"),
        "notice": qp.get("notice"),
        "page_sizes": service.settings.page_size_options,
    }
    if spec.name == "users" and drawer is not None:
        formulations, transactions, activity_error = await service.user_activity(drawer.id)
        context["activity"] = {
            "formulations": formulations,
            "transactions": transactions,
            "error": activity_error,
        }
    if spec.name == "ingredients":
        context["category_counts"] = aggregates.ingredient_category_counts(
            page.response.summary, page.options.get("ingredient-categories", [])
        )
    return templates.TemplateResponse(request, "resource_list.html", context, status_code=status_code)


async def _save(
    request: Request,
    spec: ResourceSpec,
    user: SessionUser,
    service: ResourceService,
    item_id: Optional[str] = None,
):
    form = await request.form()
    try:
        if spec.form == "config":
            payload = parse_config(form, str(form.get("type") or "string"))
        else:
            payload = PARSERS[spec.form](form)
        if item_id is None:
            await service.create(spec, payload)
        else:
            await service.update(spec, item_id, payload)
    except FormValidationError as e:
        return await _render_list(
            request, spec, user, service,
            modal=item_id or "new", form_values=_posted_values(form), form_errors=e.errors, status_code=400,
        )
    except BackendError as e:
        return await _render_list(
            request, spec, user, service,
            modal=item_id or "new", form_values=_posted_values(form), form_errors={"": e.message},
            status_code=e.status_code if e.is_client_error else 502,
        )
    action = "created" if item_id is None else "updated"
    return _redirect(_back_url(request, spec, notice=f"{spec.singular} {action}"))


@router.post("/users/{user_id}/block")
async def toggle_user_block(
    request: Request,
    user_id: str,
    active: str = Form(...),
    user: SessionUser = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    """Block or unblock a user account."""
    spec = _spec_or_404("users")
    is_active = active.lower() == "true"
    try:
        await service.set_user_active(user_id, is_active)
    except BackendError as e:
        return _redirect(_back_url(request, spec, error=e.message))
    return _redirect(_back_url(request, spec, notice="User unblocked" if is_active else "User blocked"))


@router.get("/{resource}", response_class=HTMLResponse)
async def resource_list(
    request: Request,
    resource: str,
    user: SessionUser = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    return await _render_list(request, _spec_or_404(resource), user, service)


@router.post("/{resource}/create")
async def create_item(
    request: Request,
    resource: str,
    user: SessionUser = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    spec = _spec_or_404(resource)
    if not spec.can_create:
        raise HTTPException(status_code=405, detail=f"{spec.label} cannot be created here")
    return await _save(request, spec, user, service)


@router.post("/{resource}/bulk-delete")
async def bulk_delete_items(
    request: Request,
    resource: str,
    user: SessionUser = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    spec = _spec_or_404(resource)
    if not spec.can_bulk_delete:
        raise HTTPException(status_code=405, detail=f"{spec.label} cannot be bulk deleted")
    ids = list(dict.fromkeys(i for i in request.query_params.getlist("selected") if i))
    if not ids:
        return _redirect(_back_url(request, spec, error="No items selected"))

    try:
        outcome = await service.bulk_delete(spec, ids)
    except BackendError as e:
        return _redirect(_back_url(request, spec, error=e.message))
    if outcome.failed:
        return _redirect(_back_url(request, spec, drop=outcome.deleted, error=outcome.message))
    return _redirect(
        _back_url(request, spec, drop=outcome.deleted, notice=f"Deleted {len(outcome.deleted)} {spec.item_label}")
    )


@router.post("/{resource}/{item_id}/update")
async def update_item(
    request: Request,
    resource: str,
    item_id: str,
    user: SessionUser = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    spec = _spec_or_404(resource)
    if not spec.can_update:
        raise HTTPException(status_code=405, detail=f"{spec.label} cannot be edited here")
    return await _save(request, spec, user, service, item_id)


@router.post("/{resource}/{item_id}/delete")
async def delete_item(
    request: Request,
    resource: str,
    item_id: str,
    user: SessionUser = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    spec = _spec_or_404(resource)
    if not spec.can_delete:
        raise HTTPException(status_code=405, detail=f"{spec.label} cannot be deleted here")
    try:
        await service.delete(spec, item_id)
    except BackendError as e:
        return _redirect(_back_url(request, spec, error=e.message))
    return _redirect(_back_url(request, spec, drop=[item_id], notice=f"{spec.singular} deleted"))
