"""Utility functions shared by the API views: audit logging, envelopes, pagination"""
import logging
import math

from django.core.paginator import Paginator
from rest_framework.response import Response

from .exceptions import ValidationFailed
from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for the client IP), optional
        action: Action type (stock_sale, transaction_update, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        object_name: Human-readable name of the object (e.g., product name)
        object_reference: Reference identifier (e.g., transaction id)
    """
    if not action or not model_name or not object_id:
        logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
        return None

    try:
        return AuditLog.objects.create(
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def success_response(data=None, status=200, **extra):
    """Wrap a payload in the ``{"success": true, "data": ...}`` envelope"""
    body = {'success': True}
    if data is not None:
        body['data'] = data
    body.update(extra)
    return Response(body, status=status)


def parse_int_param(request, name, default, minimum=None):
    """Read an integer query parameter, falling back to ``default`` when absent or blank"""
    raw = request.query_params.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationFailed(f"Query parameter '{name}' must be an integer")
    if minimum is not None and value < minimum:
        raise ValidationFailed(f"Query parameter '{name}' must be at least {minimum}")
    return value


def paginate(request, queryset, serializer_class, default_limit=5):
    """
    Page a queryset with ``page``/``limit`` query parameters and return the
    enveloped response with a ``pagination`` block.
    """
    page = parse_int_param(request, 'page', 1, minimum=1)
    limit = parse_int_param(request, 'limit', default_limit, minimum=1)

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = serializer_class(page_obj.object_list, many=True)

    return success_response(
        serializer.data,
        pagination={
            'page': page,
            'limit': limit,
            'total': paginator.count,
            'totalPages': math.ceil(paginator.count / limit) if paginator.count else 0,
        },
    )
