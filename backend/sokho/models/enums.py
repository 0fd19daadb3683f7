"""
Các danh mục đóng (enum) dùng chung.

Giá trị lưu trong DB chính là nhãn tiếng Việt hiển thị trên giao diện.
"""

PRODUCT_UNITS = ("cái", "cuốn", "kg", "lít", "bộ", "m", "thùng", "chai", "hộp")

INCOME_CATEGORIES = ("Lương", "Bán hàng", "Đầu tư", "Khác")
SALES_INCOME_CATEGORY = "Bán hàng"

EXPENSE_CATEGORIES = (
    "Thực phẩm",
    "Di chuyển",
    "Nhà ở",
    "Giải trí",
    "Giáo dục",
    "Sức khỏe",
    "Nguyên vật liệu",
    "Giá vốn hàng bán",
    "Khác",
)

TRANSACTION_IMPORT = "import"
TRANSACTION_EXPORT = "export"
TRANSACTION_TYPES = (TRANSACTION_IMPORT, TRANSACTION_EXPORT)

ORDER_STATUS_NEW = "Mới"
ORDER_STATUS_COMPLETED = "Hoàn thành"
ORDER_STATUS_CANCELLED = "Đã hủy"
ORDER_STATUSES = (ORDER_STATUS_NEW, ORDER_STATUS_COMPLETED, ORDER_STATUS_CANCELLED)

PAYMENT_METHOD_CASH = "cash"
PAYMENT_METHOD_TRANSFER = "transfer"
PAYMENT_METHODS = (PAYMENT_METHOD_CASH, PAYMENT_METHOD_TRANSFER)

PAYMENT_METHOD_LABELS = {
    PAYMENT_METHOD_CASH: "Tiền mặt",
    PAYMENT_METHOD_TRANSFER: "Chuyển khoản",
}

STOCK_IN_STOCK = "in_stock"
STOCK_LOW = "low_stock"
STOCK_OUT = "out_of_stock"
