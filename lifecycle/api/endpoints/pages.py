"""Page routes behind the access gateway.

The gateway decides who reaches these; the handlers only render data as JSON.
"""
from fastapi import APIRouter, Request

from lifecycle.api.deps import DB, CurrentSubject
from lifecycle.core.routes import LOGIN_PATH, SIGNUP_PATH
from lifecycle.middleware.access_gateway import REDIRECT_PARAM, get_access_gateway
from lifecycle.schemas.pages import (
    AuthPageResponse,
    BatchStatusResponse,
    DashboardResponse,
    DashboardSummary,
    SubjectResponse,
)
from lifecycle.services.inventory_store import InventoryStore
from lifecycle.services.notification_selector import flatten_batches, summarize_statuses

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(request: Request, db: DB, subject: CurrentSubject):
    """Current subject's batches, soonest expiry first, with status counts."""
    products = await InventoryStore(db).get_products(subject.id)
    alerts = sorted(flatten_batches(products), key=lambda a: (a.days_until_expiry, a.product_name.lower()))
    counts = summarize_statuses(alerts)

    is_admin = await get_access_gateway(request.app).role_resolver.is_admin(subject.id)

    return DashboardResponse(
        subject=SubjectResponse(
            id=subject.id,
            email=subject.email,
            business_name=subject.business_name,
            is_admin=is_admin,
        ),
        summary=DashboardSummary(
            total_products=len(products),
            total_batches=len(alerts),
            **counts,
        ),
        batches=[BatchStatusResponse(**alert.to_dict()) for alert in alerts],
    )


@router.get(LOGIN_PATH, response_model=AuthPageResponse)
async def login_page(request: Request):
    return AuthPageResponse(page="login", redirect_to=request.query_params.get(REDIRECT_PARAM))


@router.get(SIGNUP_PATH, response_model=AuthPageResponse)
async def signup_page():
    return AuthPageResponse(page="signup")
