# matchmycv/routes/billing.py
from __future__ import annotations
import stripe
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import select

from ..extensions import get_db
from ..models import User
from ..schemas import CheckoutRequest

billing_bp = Blueprint("billing", __name__)


def _stripe_ready() -> bool:
    key = current_app.config.get("STRIPE_SECRET_KEY")
    if key:
        stripe.api_key = key
    return bool(key)


@billing_bp.post("/api/stripe/create-checkout-session")
@login_required
def create_checkout_session():
    if not _stripe_ready():
        return jsonify(error="billing_unavailable", message="Billing is not configured"), 503
    body = CheckoutRequest.model_validate(request.get_json(silent=True) or {})
    price_id = current_app.config.get(
        "STRIPE_PRICE_ID_YEARLY" if body.interval == "yearly" else "STRIPE_PRICE_ID_MONTHLY"
    )
    if not price_id:
        return jsonify(error="bad_request", message="Unknown plan interval"), 400

    app_url = current_app.config["APP_URL"].rstrip("/")
    session = stripe.checkout.Session.create(
        mode="subscription",
        line_items=[{"price": price_id, "quantity": 1}],
        success_url=f"{app_url}/app/billing?status=success",
        cancel_url=f"{app_url}/pricing?status=cancel",
        client_reference_id=current_user.id,
        customer=current_user.stripe_customer_id or None,
        customer_email=None if current_user.stripe_customer_id else current_user.email,
        metadata={"userId": current_user.id},
        allow_promotion_codes=True,
    )
    return jsonify(id=session.id, url=session.url)


@billing_bp.post("/api/stripe/portal")
@login_required
def billing_portal():
    if not _stripe_ready():
        return jsonify(error="billing_unavailable", message="Billing is not configured"), 503
    if not current_user.stripe_customer_id:
        return jsonify(error="bad_request", message="No billing account found"), 400
    portal = stripe.billing_portal.Session.create(
        customer=current_user.stripe_customer_id,
        return_url=current_app.config["APP_URL"].rstrip("/") + "/app/billing",
    )
    return jsonify(url=portal.url)


def _set_plan(session, user: User | None, plan: str, customer_id: str | None = None) -> None:
    if user is None:
        current_app.logger.warning("Stripe event for unknown user (customer %s)", customer_id)
        return
    user.plan = plan
    if customer_id:
        user.stripe_customer_id = customer_id
    session.commit()
    current_app.logger.info("User %s moved to %s", user.id, plan)


@billing_bp.post("/stripe/webhook")
def stripe_webhook():
    endpoint_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    payload = request.get_data(as_text=True)
    sig_header = request.headers.get("Stripe-Signature")

    # ----- Verify Stripe signature -----
    try:
        event = stripe.Webhook.construct_event(payload, sig_header, endpoint_secret)
    except ValueError:
        return ("Bad payload", 400)
    except stripe.SignatureVerificationError:
        return ("Bad signature", 400)

    etype = event["type"]
    obj = event["data"]["object"]
    session = get_db()

    if etype == "checkout.session.completed":
        metadata = obj.get("metadata") or {}
        user_id = metadata.get("userId") or obj.get("client_reference_id")
        user = session.get(User, user_id) if user_id else None
        _set_plan(session, user, "PRO", obj.get("customer"))

    elif etype == "customer.subscription.deleted":
        customer_id = obj.get("customer")
        user = session.execute(
            select(User).where(User.stripe_customer_id == customer_id)
        ).scalar_one_or_none() if customer_id else None
        _set_plan(session, user, "FREE")

    return ("OK", 200)
