from typing import Dict, Mapping, Optional, Union
from urllib.parse import parse_qsl
from models.payment_model import PaymentFailure, PaymentSuccess
from models.view_model import ActionKind, PaymentResultPage, ViewAction, ViewState
from services.payment_resolver import resolve_payment_outcome

PROCESSING_TITLE = "Đang xử lý kết quả thanh toán..."
PROCESSING_MESSAGE = "Vui lòng đợi trong giây lát"
SUCCESS_TITLE = "Thanh toán thành công!"
FAILURE_TITLE = "Thanh toán thất bại"
FAILURE_MESSAGE = "Có lỗi xảy ra trong quá trình thanh toán. Vui lòng thử lại sau."

HOME_ACTION = ViewAction(label="Về trang chủ", target="/")
RETRY_ACTION = ViewAction(label="Thử lại", kind=ActionKind.BACK, steps=-1, primary=True)


def parse_query(query: Union[str, Mapping[str, str], None]) -> Dict[str, str]:
    if not query:
        return {}
    if isinstance(query, str):
        pairs = parse_qsl(query.lstrip("?"), keep_blank_values=True)
    else:
        pairs = query.items()
    result = {}
    for key, value in pairs:
        result[key] = value
    return result


class PaymentResultView:
    def __init__(self):
        self.params: Optional[Dict[str, str]] = None

    def mount(self, query: Union[str, Mapping[str, str], None]):
        self.params = parse_query(query)

    def render(self) -> PaymentResultPage:
        if self.params is None:
            return self._processing()
        outcome = resolve_payment_outcome(self.params)
        if isinstance(outcome, PaymentSuccess):
            actions = []
            if outcome.transaction_ref:
                actions.append(
                    ViewAction(
                        label="Xem đơn hàng",
                        target=f"/orders/{outcome.transaction_ref}",
                        primary=True,
                    )
                )
            actions.append(HOME_ACTION)
            return PaymentResultPage(
                state=ViewState.SUCCESS,
                title=SUCCESS_TITLE,
                message=f"Mã giao dịch: {outcome.transaction_no or ''}".strip(),
                transaction_ref=outcome.transaction_ref,
                transaction_no=outcome.transaction_no,
                actions=actions,
            )
        if isinstance(outcome, PaymentFailure):
            return PaymentResultPage(
                state=ViewState.FAILURE,
                title=FAILURE_TITLE,
                message=FAILURE_MESSAGE,
                detail=outcome.message,
                transaction_ref=self.params.get("vnp_TxnRef"),
                actions=[RETRY_ACTION, HOME_ACTION],
            )
        # no parameters yet, or the user left the gateway mid-payment
        return self._processing()

    def _processing(self) -> PaymentResultPage:
        return PaymentResultPage(
            state=ViewState.PROCESSING,
            title=PROCESSING_TITLE,
            message=PROCESSING_MESSAGE,
        )
