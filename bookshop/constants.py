ROLE_ADMIN = "admin"
ROLE_CUSTOMER = "customer"

ORDER_PENDING = "pending"

# ключи в key-value файле состояния
CART_STORAGE_KEY = "bookshop_cart"
REMEMBERED_USER_KEY = "remembered_user_id"

# хранится в UTC, сравнивается как строка
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SORT_PRICE_ASC = "asc"
SORT_PRICE_DESC = "desc"
ALL_CATEGORIES = "All"

MONTH_NAMES = ["янв", "фев", "мар", "апр", "май", "июн", "июл", "авг", "сен", "окт", "ноя", "дек"]
