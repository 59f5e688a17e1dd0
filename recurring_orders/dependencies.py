from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from recurring_orders.services.recurring_order_service import RecurringOrderService


def get_recurring_order_service(request: Request) -> RecurringOrderService:
    """The service instance owned by the application's lifespan."""
    service: RecurringOrderService | None = getattr(
        request.app.state, "recurring_order_service", None
    )
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Recurring order service not available",
        )
    return service


RecurringService = Annotated[RecurringOrderService, Depends(get_recurring_order_service)]
