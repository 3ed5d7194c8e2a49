"""
Effective pricing resolver.

A professional may override a service's base price and/or duration through
their assignment. Effective values are ``override if set else base``.
Multi-service bookings sum effective prices and durations in request order.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from booking_engine.errors import NotFoundError, ValidationError
from booking_engine.schemas.booking_schema import BookingServiceInfo
from booking_engine.schemas.catalog_schema import (
    EffectivePricing,
    Professional,
    ProfessionalServiceAssignment,
    Service,
    ServiceProfessional,
)

logger = logging.getLogger(__name__)


def effective(service: Service, assignment: Optional[ProfessionalServiceAssignment]) -> EffectivePricing:
    """Resolve the price/duration a professional charges for ``service``."""
    custom_price = assignment.custom_price if assignment is not None else None
    custom_duration = assignment.custom_duration_minutes if assignment is not None else None
    return EffectivePricing(
        service_id=service.id,
        service_name=service.name,
        price=custom_price if custom_price is not None else service.price,
        duration_minutes=custom_duration if custom_duration is not None else service.duration_minutes,
        base_price=service.price,
        base_duration_minutes=service.duration_minutes,
        has_custom_price=custom_price is not None,
        has_custom_duration=custom_duration is not None,
    )


def compose(
    service_ids: list[str],
    services: dict[str, Service],
    assignments: Iterable[ProfessionalServiceAssignment],
) -> list[BookingServiceInfo]:
    """
    Build the ordered price/duration snapshot for a multi-service booking.

    Args:
        service_ids: Requested services, in display order.
        services: Service records keyed by id.
        assignments: The professional's service assignments.

    Raises:
        ValidationError: On an empty or duplicated list, an inactive service,
            or a service the professional is not assigned to.
        NotFoundError: If a service id is unknown.
    """
    if not service_ids:
        raise ValidationError("At least one service is required.")
    duplicates = sorted({sid for sid in service_ids if service_ids.count(sid) > 1})
    if duplicates:
        raise ValidationError(f"Duplicate services in request: {duplicates}")

    by_service = {a.service_id: a for a in assignments if a.active}
    composed = []
    for order, service_id in enumerate(service_ids):
        service = services.get(service_id)
        if service is None:
            raise NotFoundError("Service", service_id)
        if not service.active:
            raise ValidationError(f"Service '{service.name}' is inactive.")
        assignment = by_service.get(service_id)
        if assignment is None:
            raise ValidationError(
                f"Professional is not assigned to service '{service.name}'."
            )
        pricing = effective(service, assignment)
        composed.append(BookingServiceInfo(
            service_id=service.id,
            service_name=service.name,
            price=pricing.price,
            duration_minutes=pricing.duration_minutes,
            display_order=order,
        ))
    logger.debug(
        "Composed %d services: %d min, %s",
        len(composed), total_duration(composed), total_price(composed),
    )
    return composed


def total_price(items: Iterable[BookingServiceInfo]) -> Decimal:
    return sum((i.price for i in items), Decimal("0"))


def total_duration(items: Iterable[BookingServiceInfo]) -> int:
    return sum(i.duration_minutes for i in items)


def list_professional_services(
    services: dict[str, Service],
    assignments: Iterable[ProfessionalServiceAssignment],
) -> list[EffectivePricing]:
    """Effective pricing for every service a professional is assigned to."""
    result = []
    for assignment in assignments:
        service = services.get(assignment.service_id)
        if service is None:
            raise NotFoundError("Service", assignment.service_id)
        result.append(effective(service, assignment))
    return sorted(result, key=lambda p: p.service_name)


def list_service_professionals(
    service: Service,
    professionals: Iterable[Professional],
    assignments: Iterable[ProfessionalServiceAssignment],
) -> list[ServiceProfessional]:
    """Professionals able to perform ``service``, with their effective values."""
    by_professional = {
        a.professional_id: a for a in assignments if a.service_id == service.id
    }
    result = []
    for professional in professionals:
        assignment = by_professional.get(professional.id)
        if assignment is None:
            continue
        pricing = effective(service, assignment)
        result.append(ServiceProfessional(
            professional_id=professional.id,
            professional_name=professional.name,
            effective_price=pricing.price,
            effective_duration_minutes=pricing.duration_minutes,
            has_custom_price=pricing.has_custom_price,
            has_custom_duration=pricing.has_custom_duration,
            active=assignment.active and professional.active,
        ))
    return result
