import logging

from rest_framework.decorators import api_view
from rest_framework.response import Response
from rest_framework import status

from rostering import tasks
from rostering.conf import get_config
from rostering.domain.repositories import AuditLogRepository
from rostering.services.actor import get_actor
from rostering.services.audit import audit_page
from rostering.services.availability import AvailabilityWindow, PeriodManager
from rostering.services.calendar import current_sunday as compute_current_sunday
from rostering.services.clock import get_clock
from rostering.services.errors import AuthenticationMissing, AuthorizationDenied, ValidationFailed
from rostering.services.permissions import Action, authorize, is_allowed
from rostering.services.roster import RosterManager
from rostering.services.setlist import SetlistManager
from rostering.utils import parse_iso_date

from .exceptions import _flatten
from .filters import AuditLogFilter
from .serializers import (
    AuditLogSerializer,
    PeriodListSerializer,
    PeriodSerializer,
    RosterAssignmentSerializer,
    SetlistSlotSerializer,
)

log = logging.getLogger(__name__)

CLOSE_EXPECTED = 'Invalid request body. Expected { action: "close" }'

def _body(request) -> dict:
    data = request.data
    if not isinstance(data, dict):
        raise ValidationFailed("Invalid request body")
    return data

def _positive_int(raw, name: str, default: int) -> int:
    if raw in (None, ""):
        return default
    if not str(raw).isdigit() or int(raw) < 1:
        raise ValidationFailed(f"{name} must be a positive integer")
    return int(raw)

# =========================
# Identity
# =========================

@api_view(["GET"])
def me(request):
    actor = get_actor(request)
    if actor is None:
        raise AuthenticationMissing()
    return Response(actor.as_dict())

@api_view(["GET"])
def current_sunday(request):
    return Response({"date": compute_current_sunday(get_clock().now()).isoformat()})

# =========================
# Availability periods (staff)
# =========================

@api_view(["GET", "POST"])
def periods(request):
    action = Action.VIEW_PERIODS if request.method == "GET" else Action.MANAGE_PERIODS
    actor = authorize(get_actor(request), action)
    manager = PeriodManager(clock=get_clock())
    if request.method == "GET":
        result = manager.list_periods()
        data = PeriodListSerializer(
            result["periods"], many=True, context={"total_musicians": result["total_musicians"]}
        ).data
        return Response(data)
    period = manager.create(actor, _body(request))
    return Response(PeriodSerializer(period).data, status=status.HTTP_201_CREATED)

@api_view(["GET", "PATCH", "PUT", "DELETE"])
def period_detail(request, period_id: int):
    action = Action.VIEW_PERIODS if request.method == "GET" else Action.MANAGE_PERIODS
    actor = authorize(get_actor(request), action)
    manager = PeriodManager(clock=get_clock())

    if request.method == "GET":
        detail = manager.detail(period_id)
        return Response({
            "period": PeriodSerializer(detail["period"]).data,
            "sundays": detail["sundays"],
            "members": detail["members"],
        })
    if request.method == "PATCH":
        data = request.data
        if not isinstance(data, dict) or data.get("action") != "close":
            raise ValidationFailed(CLOSE_EXPECTED)
        manager.close(actor, period_id)
        return Response({"closed": True})
    if request.method == "PUT":
        period = manager.update(actor, period_id, _body(request))
        return Response({"updated": True, "period": PeriodSerializer(period).data})
    manager.delete(actor, period_id)
    return Response(status=status.HTTP_204_NO_CONTENT)

# =========================
# Member availability (personal link)
# =========================

@api_view(["GET", "POST"])
def member_availability(request, token: str):
    window = AvailabilityWindow(clock=get_clock())
    member = window.member_for_token(token)
    period_id = request.query_params.get("periodId")
    target_month = request.query_params.get("targetMonth")

    if period_id:
        if request.method == "GET":
            return Response(window.period_view(member, period_id))
        window.submit_period(member, period_id, _body(request))
        return Response({"success": True})

    if request.method == "GET":
        return Response(window.monthly_view(member, target_month))
    window.submit_monthly(member, target_month, _body(request))
    return Response({"success": True})

# =========================
# Setlist
# =========================

@api_view(["GET", "POST"])
def setlist(request):
    actor = get_actor(request)
    manager = SetlistManager()
    if request.method == "GET":
        d = parse_iso_date(request.query_params.get("date"))
        if d is None:
            raise ValidationFailed("Missing or invalid ?date=YYYY-MM-DD")
        # Anonymous callers see published rows only.
        published_only = actor is None or not is_allowed(actor.role, Action.READ_ALL_SETLIST)
        rows = manager.read(d, published_only=published_only)
        return Response(SetlistSlotSerializer(rows, many=True).data)
    slot = manager.upsert(actor, _body(request))
    return Response(SetlistSlotSerializer(slot).data, status=status.HTTP_201_CREATED)

@api_view(["DELETE"])
def setlist_slot(request, slot_id: int):
    SetlistManager().delete(get_actor(request), slot_id)
    return Response(status=status.HTTP_204_NO_CONTENT)

@api_view(["PATCH"])
def setlist_publish(request, date: str):
    d = SetlistManager().publish(get_actor(request), date)
    try:
        tasks.notify_setlist_published.delay(d.isoformat())
    except Exception:
        log.exception("Failed to enqueue notify_setlist_published for %s", d)
    return Response({"published": True, "date": d.isoformat()})

@api_view(["PATCH"])
def setlist_revert(request, date: str):
    d = SetlistManager().revert(get_actor(request), date)
    return Response({"reverted": True, "date": d.isoformat()})

@api_view(["PATCH"])
def setlist_reorder(request, date: str):
    actor = get_actor(request)
    data = request.data if isinstance(request.data, dict) else {}
    rows = SetlistManager().reorder(actor, date, data.get("order"))
    return Response(SetlistSlotSerializer(rows, many=True).data)

@api_view(["DELETE"])
def setlist_clear(request, date: str):
    manager = SetlistManager()
    deleted = manager.clear(get_actor(request), date)
    return Response({"deleted": deleted, "date": date})

# =========================
# Roster
# =========================

@api_view(["GET", "POST", "PATCH"])
def roster(request):
    actor = get_actor(request)
    manager = RosterManager(clock=get_clock())
    if request.method == "GET":
        authorize(actor, Action.VIEW_ROSTER)
        view = manager.month_view(request.query_params.get("month"))
        view["assignments"] = RosterAssignmentSerializer(view["assignments"], many=True).data
        return Response(view)

    actor = authorize(actor, Action.MANAGE_ROSTER, anonymous_error=AuthorizationDenied)
    data = _body(request)
    if request.method == "POST":
        saved = manager.save_draft(actor, data)
        return Response({"success": True, "saved": saved})

    month = data.get("month")
    if "notes" in data:
        manager.save_note(actor, month, data.get("notes"))
    elif data.get("action") == "revert":
        manager.revert(actor, month)
    else:
        manager.finalize(actor, month)
    return Response({"success": True})

# =========================
# Audit log
# =========================

@api_view(["GET"])
def audit_log(request):
    authorize(get_actor(request), Action.VIEW_AUDIT_LOG)
    config = get_config()
    qp = request.query_params
    page = _positive_int(qp.get("page"), "page", 1)
    sort = qp.get("sort") or "desc"
    if sort not in ("asc", "desc"):
        raise ValidationFailed("sort must be asc or desc")

    filterset = AuditLogFilter(qp, queryset=AuditLogRepository.all())
    if not filterset.is_valid():
        raise ValidationFailed(_flatten(filterset.errors))
    result = audit_page(filterset.qs, page, config.audit_page_size, sort)
    return Response({
        "entries": AuditLogSerializer(result["entries"], many=True).data,
        "total": result["total"],
        "page": result["page"],
        "pageSize": result["page_size"],
    })
