"""State holder for the order confirmation screen.

The view owns exactly one order fetch per (order_id, token) pair and turns
the fetched order plus the ``payment=pending`` redirect marker into a
``ConfirmationPage`` ready for rendering.
"""
import os
from typing import Awaitable, Callable, Optional, Tuple
from dotenv import load_dotenv
from models.order_model import OrderDetail
from models.payment_model import PaymentMethod, PaymentStatus
from models.view_model import (
    ConfirmationAddress,
    ConfirmationItem,
    ConfirmationPage,
    Headline,
    Tone,
    ViewAction,
    ViewState,
)
from services.payment_resolver import PENDING_MARKER_VALUE, effective_payment_status
from utils.formatting import (
    build_image_url,
    format_vi_date,
    format_vnd,
    payment_method_label,
    payment_status_label,
)

load_dotenv()

IMG_URL = os.getenv("IMG_URL", "")

ORDER_LOAD_ERROR = "Không thể tải thông tin đơn hàng"
ORDER_NOT_FOUND = "Không tìm thấy đơn hàng"
PENDING_HINT = (
    "Lưu ý: Đơn hàng của bạn sẽ được xử lý sau khi việc thanh toán được hoàn tất. "
    "Nếu bạn đã đóng cổng thanh toán, bạn có thể thanh toán lại từ trang Chi tiết đơn hàng."
)

CONFIRMED_HEADLINE = Headline(
    tone=Tone.SUCCESS,
    icon="check",
    title="Đơn hàng của bạn đã được xác nhận!",
    message="Cảm ơn bạn đã mua hàng. Chúng tôi sẽ gửi email xác nhận đến bạn sớm.",
)
PENDING_HEADLINE = Headline(
    tone=Tone.PENDING,
    icon="clock",
    title="Đơn hàng đang chờ thanh toán!",
    message="Vui lòng hoàn tất thanh toán trong tab đã mở hoặc kiểm tra email của bạn.",
)
FAILED_HEADLINE = Headline(
    tone=Tone.FAILURE,
    icon="x",
    title="Thanh toán đơn hàng không thành công!",
    message="Giao dịch chưa được hoàn tất. Bạn có thể thanh toán lại từ trang Chi tiết đơn hàng.",
)

HOME_ACTION = ViewAction(label="Quay về trang chủ", target="/", primary=True)

OrderFetcher = Callable[[str, str], Awaitable[OrderDetail]]


def select_headline(order: OrderDetail, marker_pending: bool) -> Headline:
    status = effective_payment_status(marker_pending, order.payment_status)
    if status == PaymentStatus.PAID:
        return CONFIRMED_HEADLINE
    if status == PaymentStatus.FAILED:
        return FAILED_HEADLINE
    # cash on delivery is settled at fulfillment, a pending payment is expected
    if order.payment_method == PaymentMethod.COD and not marker_pending:
        return CONFIRMED_HEADLINE
    return PENDING_HEADLINE


def build_confirmation_page(
    order: OrderDetail, marker_pending: bool = False, image_base_url: str = IMG_URL
) -> ConfirmationPage:
    headline = select_headline(order, marker_pending)
    show_hint = (
        marker_pending
        and effective_payment_status(marker_pending, order.payment_status)
        == PaymentStatus.PENDING
    )
    status = order.payment_status
    status_tone = (
        Tone.SUCCESS
        if status == PaymentStatus.PAID
        else Tone.PENDING if status == PaymentStatus.PENDING else Tone.FAILURE
    )
    address = order.address
    city_state = ", ".join(part for part in (address.city, address.state) if part)
    return ConfirmationPage(
        state=ViewState.READY,
        headline=headline,
        pending_hint=PENDING_HINT if show_hint else None,
        order_id=f"#{order.id}",
        created_date=format_vi_date(order.created_at),
        total=format_vnd(order.total),
        shipping_fee=format_vnd(order.shipping_fee),
        payment_method=payment_method_label(order.payment_method),
        payment_status=payment_status_label(status),
        payment_status_tone=status_tone,
        address=ConfirmationAddress(
            full_name=address.full_name,
            phone=address.phone,
            address_line=address.address_line,
            city_state=city_state,
            country=address.country,
        ),
        items=[
            ConfirmationItem(
                id=item.id,
                name=item.name,
                image_url=build_image_url(image_base_url, item.image),
                variant=f"{item.variant.size or ''} - {item.variant.color or ''}",
                unit_price=format_vnd(item.price),
                quantity=item.quantity,
            )
            for item in order.items
        ],
        actions=[
            ViewAction(label="Xem đơn hàng của tôi", target="/orders", primary=True),
            ViewAction(label="Tiếp tục mua sắm", target="/"),
        ],
    )


class OrderConfirmationView:
    def __init__(self, fetch_order: OrderFetcher, image_base_url: str = IMG_URL):
        self._fetch_order = fetch_order
        self._image_base_url = image_base_url
        self._current_key: Optional[Tuple[str, str]] = None
        self._closed = False
        self.loading = True
        self.error: Optional[str] = None
        self.order: Optional[OrderDetail] = None
        self.payment_marker: Optional[str] = None

    @property
    def marker_pending(self) -> bool:
        return self.payment_marker == PENDING_MARKER_VALUE

    async def load(self, order_id, token: Optional[str], payment_marker: Optional[str] = None):
        self.payment_marker = payment_marker
        if self._closed or not order_id or not token:
            return
        key = (str(order_id), token)
        if key == self._current_key:
            return
        self._current_key = key
        self.loading = True
        self.error = None
        try:
            order = await self._fetch_order(key[0], token)
        except Exception as e:
            if self._is_stale(key):
                return
            print(f"{ORDER_LOAD_ERROR} #{order_id}: {e}")
            self.order = None
            self.error = ORDER_LOAD_ERROR
        else:
            if self._is_stale(key):
                return
            self.order = order
        self.loading = False

    def _is_stale(self, key) -> bool:
        return self._closed or key != self._current_key

    def close(self):
        self._closed = True

    def render(self) -> ConfirmationPage:
        if self.loading:
            return ConfirmationPage(state=ViewState.LOADING)
        if self.error or not self.order:
            return ConfirmationPage(
                state=ViewState.ERROR,
                error=self.error or ORDER_NOT_FOUND,
                actions=[HOME_ACTION],
            )
        return build_confirmation_page(
            self.order, self.marker_pending, self._image_base_url
        )
