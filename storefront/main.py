from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import ORJSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from storefront.basket import BasketService
from storefront.checkout import CheckoutWorkflow
from storefront.config import settings
from storefront.db import get_session, init_db
from storefront.identity import ResolvedIdentity, apply_identity_cookie, resolve_shopper_identity
from storefront.messaging import QueuePublisher, build_queue_publisher
from storefront.models import CatalogItem
from storefront.notifications import NotificationError, build_notification_dispatcher
from storefront.orders import OrderService
from storefront.schemas import AddBasketItemRequest, CheckoutSuccessResponse
from storefront.security import SessionIdentity, get_session_identity

logger = logging.getLogger(__name__)

BASKET_INDEX_URL = "/basket"
CHECKOUT_SUCCESS_URL = "/basket/success"


@asynccontextmanager
async def _app_lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_db()
    app.state.http_client = httpx.AsyncClient(timeout=settings.NOTIFICATION_TIMEOUT_SECONDS)
    try:
        yield
    finally:
        await app.state.http_client.aclose()


app = FastAPI(
    title="Storefront Checkout Service",
    default_response_class=ORJSONResponse,
    lifespan=_app_lifespan,
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(_request: Request, exc: Exception) -> ORJSONResponse:
    logger.exception("Unhandled server exception", exc_info=exc)
    return ORJSONResponse(status_code=500, content={"detail": "Internal server error."})


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_queue_publisher() -> QueuePublisher:
    return build_queue_publisher()


def get_shopper_identity(
    request: Request,
    session_identity: SessionIdentity = Depends(get_session_identity),
) -> ResolvedIdentity:
    return resolve_shopper_identity(session_identity=session_identity, cookies=request.cookies)


def get_checkout_workflow(
    session: Session = Depends(get_session),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    queue_publisher: QueuePublisher = Depends(get_queue_publisher),
) -> CheckoutWorkflow:
    return CheckoutWorkflow(
        basket_service=BasketService(session),
        order_service=OrderService(session),
        notifier=build_notification_dispatcher(http_client, queue_publisher),
    )


@app.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


def _basket_response(*, identity: ResolvedIdentity, session: Session) -> ORJSONResponse:
    basket = BasketService(session).get_or_create_basket_for_user(identity.shopper_id)
    content = basket.model_dump(mode="json")
    content["total"] = float(basket.total())
    return apply_identity_cookie(ORJSONResponse(content=content), identity)


@app.get(BASKET_INDEX_URL)
def basket_index(
    identity: ResolvedIdentity = Depends(get_shopper_identity),
    session: Session = Depends(get_session),
):
    return _basket_response(identity=identity, session=session)


@app.post("/basket/items")
def add_basket_item(
    payload: AddBasketItemRequest,
    identity: ResolvedIdentity = Depends(get_shopper_identity),
    session: Session = Depends(get_session),
):
    catalog_item = session.get(CatalogItem, payload.catalogItemId)
    if catalog_item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Catalog item {payload.catalogItemId} not found",
        )

    baskets = BasketService(session)
    basket = baskets.get_or_create_basket_for_user(identity.shopper_id)
    baskets.add_item_to_basket(
        basket.id,
        catalog_item_id=catalog_item.id,
        price=catalog_item.price,
        quantity=payload.quantity,
    )
    return _basket_response(identity=identity, session=session)


@app.get("/basket/checkout")
def checkout_page(
    identity: ResolvedIdentity = Depends(get_shopper_identity),
    session: Session = Depends(get_session),
):
    return _basket_response(identity=identity, session=session)


@app.post("/basket/checkout")
async def checkout(
    request: Request,
    identity: ResolvedIdentity = Depends(get_shopper_identity),
    workflow: CheckoutWorkflow = Depends(get_checkout_workflow),
):
    basket = workflow.load_basket(identity.shopper_id)

    try:
        payload: Any = await request.json()
    except ValueError:
        payload = None
    outcome = workflow.commit(basket, payload)

    if outcome.kind == "validation_failed":
        response = ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": outcome.detail},
        )
        return apply_identity_cookie(response, identity)
    if outcome.kind == "empty_basket":
        response = RedirectResponse(url=BASKET_INDEX_URL, status_code=status.HTTP_303_SEE_OTHER)
        return apply_identity_cookie(response, identity)
    if outcome.kind == "fatal":
        raise outcome.error

    try:
        await workflow.notify(outcome)
    except NotificationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    response = RedirectResponse(url=CHECKOUT_SUCCESS_URL, status_code=status.HTTP_303_SEE_OTHER)
    return apply_identity_cookie(response, identity)


@app.get(CHECKOUT_SUCCESS_URL, response_model=CheckoutSuccessResponse)
def checkout_success() -> CheckoutSuccessResponse:
    return CheckoutSuccessResponse()
