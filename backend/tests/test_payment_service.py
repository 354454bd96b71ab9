import json
from urllib.parse import parse_qsl, urlsplit
import pytest
from fastapi import HTTPException
from models.payment_model import PaymentStatus
from models.view_model import ViewState
from services import payment_service
from services.payment_service import (
    IPN_ALREADY_CONFIRMED,
    IPN_INVALID_AMOUNT,
    IPN_INVALID_CHECKSUM,
    IPN_ORDER_NOT_FOUND,
    IPN_SUCCESS,
    confirm_cod_payment,
    create_vnpay_payment,
    get_payment_status_service,
    handle_vnpay_ipn,
    handle_vnpay_return,
    is_valid_status_transition,
    update_payment_status,
)
from views.payment_result_view import PaymentResultView


@pytest.mark.parametrize(
    "current, new, allowed",
    [
        (PaymentStatus.PENDING, PaymentStatus.PAID, True),
        (PaymentStatus.PENDING, PaymentStatus.FAILED, True),
        (PaymentStatus.PAID, PaymentStatus.FAILED, False),
        (PaymentStatus.PAID, PaymentStatus.PENDING, False),
        (PaymentStatus.FAILED, PaymentStatus.PAID, False),
        (PaymentStatus.FAILED, PaymentStatus.PENDING, False),
    ],
)
def test_status_transitions(current, new, allowed):
    assert is_valid_status_transition(current, new) is allowed


async def test_pending_to_paid_moves_order_to_processing(db, sent_emails):
    db.add_order(5)
    db.add_item(5)

    result = await update_payment_status(5, PaymentStatus.PAID, {"gatewayTransactionId": "14256789"}, db)

    assert result["changed"] is True
    order = db.orders[5]
    assert order["payment_status"] == "PAID"
    assert order["status"] == "processing"
    details = json.loads(order["transaction_details"])
    assert details["gatewayTransactionId"] == "14256789"
    assert details["statusChange"]["from"] == "PENDING"
    assert details["statusChange"]["to"] == "PAID"
    assert len(sent_emails) == 1
    assert sent_emails[0]["order_id"] == 5
    assert sent_emails[0]["user_email"] == "khach@example.com"


async def test_pending_to_failed_keeps_order_status_and_sends_no_email(db, sent_emails):
    db.add_order(5)

    await update_payment_status(5, PaymentStatus.FAILED, {}, db)

    assert db.orders[5]["payment_status"] == "FAILED"
    assert db.orders[5]["status"] == "pending"
    assert sent_emails == []


async def test_repeating_same_status_is_a_no_op(db, sent_emails):
    db.add_order(5, payment_status="PAID", status="processing")

    result = await update_payment_status(5, PaymentStatus.PAID, {}, db)

    assert result["changed"] is False
    assert db.executed == []
    assert sent_emails == []


async def test_failed_is_terminal(db, sent_emails):
    db.add_order(5, payment_status="FAILED")

    with pytest.raises(HTTPException) as exc_info:
        await update_payment_status(5, PaymentStatus.PAID, {}, db)

    assert exc_info.value.status_code == 409
    assert db.orders[5]["payment_status"] == "FAILED"


async def test_update_unknown_order_is_404(db, sent_emails):
    with pytest.raises(HTTPException) as exc_info:
        await update_payment_status(99, PaymentStatus.PAID, {}, db)
    assert exc_info.value.status_code == 404


async def test_ipn_rejects_bad_checksum(db, sent_emails, make_vnpay_params):
    db.add_order(5)
    params = make_vnpay_params()
    params["vnp_Amount"] = "1"

    assert await handle_vnpay_ipn(params, db) == IPN_INVALID_CHECKSUM
    assert db.orders[5]["payment_status"] == "PENDING"


async def test_ipn_unknown_order(db, sent_emails, make_vnpay_params):
    assert await handle_vnpay_ipn(make_vnpay_params(order_id=77), db) == IPN_ORDER_NOT_FOUND


async def test_ipn_amount_mismatch(db, sent_emails, make_vnpay_params):
    db.add_order(5)
    assert await handle_vnpay_ipn(make_vnpay_params(amount=1000), db) == IPN_INVALID_AMOUNT
    assert db.orders[5]["payment_status"] == "PENDING"


async def test_ipn_confirms_once(db, sent_emails, make_vnpay_params):
    db.add_order(5)
    db.add_item(5)
    params = make_vnpay_params()

    assert await handle_vnpay_ipn(params, db) == IPN_SUCCESS
    assert db.orders[5]["payment_status"] == "PAID"
    assert await handle_vnpay_ipn(params, db) == IPN_ALREADY_CONFIRMED
    assert len(sent_emails) == 1


async def test_ipn_failure_code_marks_failed(db, sent_emails, make_vnpay_params):
    db.add_order(5)

    ack = await handle_vnpay_ipn(make_vnpay_params(response_code="24", transaction_status="02"), db)

    assert ack == IPN_SUCCESS
    assert db.orders[5]["payment_status"] == "FAILED"
    assert sent_emails == []


async def test_return_redirects_with_gateway_params(db, sent_emails, make_vnpay_params):
    db.add_order(5)
    db.add_item(5)

    location = await handle_vnpay_return(make_vnpay_params(), db)

    parts = urlsplit(location)
    assert location.startswith(f"{payment_service.FRONTEND_URL}/payment/result?")
    query = dict(parse_qsl(parts.query))
    assert query["vnp_ResponseCode"] == "00"
    assert query["vnp_TransactionNo"] == "14256789"
    assert "invalid_signature" not in query
    assert db.orders[5]["payment_status"] == "PAID"


async def test_return_flags_invalid_signature(db, sent_emails, make_vnpay_params):
    db.add_order(5)
    params = make_vnpay_params()
    params["vnp_SecureHash"] = "deadbeef"

    query = dict(parse_qsl(urlsplit(await handle_vnpay_return(params, db)).query))

    assert query["invalid_signature"] == "true"
    assert db.orders[5]["payment_status"] == "PENDING"


async def test_return_flags_missing_txn_ref(db, sent_emails, vnpay_secret):
    query = dict(parse_qsl(urlsplit(await handle_vnpay_return({"vnp_ResponseCode": "00"}, db)).query))
    assert query["missing_txn_ref"] == "true"


async def test_return_flags_unknown_order(db, sent_emails, make_vnpay_params):
    location = await handle_vnpay_return(make_vnpay_params(order_id=77), db)
    assert dict(parse_qsl(urlsplit(location).query))["order_not_found"] == "true"


async def test_return_flags_unsuccessful_transaction_with_success_code(db, sent_emails, make_vnpay_params):
    db.add_order(5)

    location = await handle_vnpay_return(make_vnpay_params(transaction_status="02"), db)

    query = dict(parse_qsl(urlsplit(location).query))
    assert db.orders[5]["payment_status"] == "FAILED"
    assert query["vnp_ResponseCode"] == "00"
    assert query["payment_failed"] == "true"
    view = PaymentResultView()
    view.mount(query)
    page = view.render()
    assert page.state == ViewState.FAILURE
    assert page.transaction_ref == "5_20250305092900"


async def test_return_replay_for_failed_order_is_not_success(db, sent_emails, make_vnpay_params):
    db.add_order(5, payment_status="FAILED")

    location = await handle_vnpay_return(make_vnpay_params(), db)

    query = dict(parse_qsl(urlsplit(location).query))
    assert query["payment_failed"] == "true"
    assert db.orders[5]["payment_status"] == "FAILED"


async def test_confirm_cod_payment(db, sent_emails):
    db.add_order(7, payment_method="cod")

    response = await confirm_cod_payment(7, db)

    assert response.success is True
    assert response.payment_status == PaymentStatus.PENDING
    assert db.orders[7]["status"] == "processing"


async def test_confirm_cod_rejects_gateway_orders(db):
    db.add_order(5, payment_method="vnpay")
    with pytest.raises(HTTPException) as exc_info:
        await confirm_cod_payment(5, db)
    assert exc_info.value.status_code == 400


async def test_create_vnpay_payment_charges_total_with_shipping(db, vnpay_secret):
    db.add_order(5, total=500000, shipping_fee=30000)

    response = await create_vnpay_payment(5, "10.0.0.1", db)

    params = dict(parse_qsl(urlsplit(response.url).query))
    assert params["vnp_Amount"] == "53000000"
    assert response.txn_ref.startswith("5_")
    assert response.order_id == 5


@pytest.mark.parametrize(
    "overrides",
    [
        {"payment_method": "cod"},
        {"status": "cancelled"},
        {"payment_status": "PAID"},
        {"payment_status": "FAILED"},
    ],
)
async def test_create_vnpay_payment_rejects_unpayable_orders(db, vnpay_secret, overrides):
    db.add_order(5, **overrides)
    with pytest.raises(HTTPException) as exc_info:
        await create_vnpay_payment(5, "10.0.0.1", db)
    assert exc_info.value.status_code == 400


async def test_get_payment_status(db):
    db.add_order(5, payment_status="PAID", status="processing", transaction_details='{"txnRef": "5_1"}')

    response = await get_payment_status_service(5, db)

    assert response.payment_status == PaymentStatus.PAID
    assert response.transaction_details == {"txnRef": "5_1"}
