"""Shared lookup helpers for the services package."""

from django.core.exceptions import ValidationError as DjangoValidationError

from ..exceptions import NotFound


def get_or_not_found(queryset, entity: str, **lookup):
    """Fetch one row or raise NotFound.

    Malformed ids (e.g. a non-UUID string from a URL) are treated as
    missing rather than leaking Django's ValidationError.
    """
    model = queryset.model
    try:
        return queryset.get(**lookup)
    except (model.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound(entity, next(iter(lookup.values()), None))
