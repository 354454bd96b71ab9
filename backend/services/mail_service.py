import resend
import os
from dotenv import load_dotenv
from utils.formatting import format_vnd, payment_method_label

load_dotenv()
resend.api_key = os.getenv("RESEND_API_KEY")
MAIL_FROM = os.getenv("MAIL_FROM", "Fashion Store <noreply@fashionstore.vn>")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")


def _items_html(items: list) -> str:
    rows = []
    for item in items:
        image = item.get("image") or "https://via.placeholder.com/50"
        rows.append(
            f"""
      <tr>
        <td style="padding: 10px; border-bottom: 1px solid #eee">
          <img src="{image}" alt="{item["name"]}" style="width: 50px; height: 50px; object-fit: cover" />
        </td>
        <td style="padding: 10px; border-bottom: 1px solid #eee">{item["name"]}</td>
        <td style="padding: 10px; border-bottom: 1px solid #eee">{item["quantity"]}</td>
        <td style="padding: 10px; border-bottom: 1px solid #eee">{format_vnd(item["price"])}</td>
        <td style="padding: 10px; border-bottom: 1px solid #eee">{format_vnd(item["price"] * item["quantity"])}</td>
      </tr>"""
        )
    return "".join(rows)


def send_order_confirmation_email(order_data: dict):
    try:
        method_text = payment_method_label(order_data["payment_method"])
        total = order_data["total"]
        shipping_fee = order_data.get("shipping_fee", 0)
        html_content = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; color: #333">
  <div style="background: #111; padding: 24px; border-radius: 8px 8px 0 0">
    <h1 style="text-align: center; margin: 0; color: #fff">Xác nhận đơn hàng</h1>
  </div>
  <div style="background: #fff; padding: 20px">
    <p>Xin chào {order_data.get("user_name") or "quý khách"},</p>
    <p>Cảm ơn bạn đã mua sắm tại Fashion Store. Đơn hàng của bạn đã được ghi nhận.</p>
    <p><strong>Mã đơn hàng:</strong> #{order_data["order_id"]}</p>
    <p><strong>Phương thức thanh toán:</strong> {method_text}</p>
    <table style="width: 100%; border-collapse: collapse; margin: 20px 0">
      <tr>
        <th></th>
        <th style="text-align: left">Sản phẩm</th>
        <th style="text-align: left">Số lượng</th>
        <th style="text-align: left">Đơn giá</th>
        <th style="text-align: left">Thành tiền</th>
      </tr>{_items_html(order_data.get("items", []))}
    </table>
    <p><strong>Tạm tính:</strong> {format_vnd(total)}</p>
    <p><strong>Phí vận chuyển:</strong> {format_vnd(shipping_fee)}</p>
    <p><strong>Tổng cộng:</strong> {format_vnd(total + shipping_fee)}</p>
    <p style="text-align: center; margin-top: 30px">
      <a href="{FRONTEND_URL}/orders/{order_data["order_id"]}"
         style="display: inline-block; background: #111; color: #fff; padding: 10px 16px; text-decoration: none; border-radius: 6px">
        Xem chi tiết đơn hàng
      </a>
    </p>
  </div>
  <div style="text-align: center; font-size: 12px; color: #888; margin-top: 20px">
    <p>Cần hỗ trợ? Liên hệ support@fashionstore.com hoặc 0901234567.</p>
    <p>© Fashion Store. Mọi quyền được bảo lưu.</p>
  </div>
</div>
        """
        params = {
            "from": MAIL_FROM,
            "to": [order_data["user_email"]],
            "subject": f"Xác nhận đơn hàng #{order_data['order_id']} - Fashion Store",
            "html": html_content,
        }
        result = resend.Emails.send(params)
        if result and "id" in result:
            print(
                f"Đã gửi email xác nhận đơn hàng #{order_data['order_id']} tới {order_data['user_email']}, mã email: {result['id']}"
            )
            return {"success": True, "email_id": result["id"]}
        else:
            print(f"Gửi email xác nhận đơn hàng #{order_data['order_id']} thất bại")
            return {"success": False, "error": "Phản hồi không hợp lệ"}
    except Exception as e:
        print(f"Lỗi gửi email xác nhận đơn hàng: {e}")
        return {"success": False, "error": f"Lỗi không xác định: {e}"}
