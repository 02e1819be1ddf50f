"""
Webhook for the external payment collaborator.

Payment capture happens elsewhere; this endpoint only records the purchase
reported by a "purchase completed" event.
"""

import hmac
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, Response
from sqlalchemy.orm import Session

from academy_backend.api.exceptions import UnauthorizedException
from academy_backend.database import get_db
from academy_backend.interface.enrollments import PurchaseCompletedEvent, PurchaseGet
from academy_backend.services.enrollment import record_purchase
from academy_backend.settings import settings

logger = logging.getLogger(__name__)

payments_router = APIRouter()

def verify_webhook_secret(x_payment_secret: Optional[str] = Header(None)):

    if settings.PAYMENT_WEBHOOK_SECRET is None:
        return

    if x_payment_secret is None or not hmac.compare_digest(x_payment_secret, settings.PAYMENT_WEBHOOK_SECRET):
        logger.warning("Rejected purchase event with missing or wrong webhook secret")
        raise UnauthorizedException("Invalid webhook secret")

@payments_router.post("/purchase-completed", response_model=PurchaseGet, dependencies=[Depends(verify_webhook_secret)])
def purchase_completed(event: PurchaseCompletedEvent, response: Response, db: Session = Depends(get_db)):
    purchase, created = record_purchase(db, event)
    response.status_code = 201 if created else 200
    return purchase
