# storefront/core/locales.py

# Session / auth
ERROR_INVALID_SESSION = "Invalid session"
ERROR_LOGIN_REQUIRED = "يجب تسجيل الدخول"
ERROR_LOGIN_REQUIRED_FOR_ORDER = "يرجى تسجيل الدخول لإتمام الطلب."

# Cart
SUCCESS_ADDED_TO_CART = "تم إضافة {name} إلى السلة"
SUCCESS_REMOVED_FROM_CART = "تم حذف المنتج من السلة"
SUCCESS_CART_CLEARED = "تم تفريغ السلة"
ERROR_CART_LOAD_FAILED = "فشل في تحميل سلة المشتريات"
ERROR_ADD_TO_CART_FAILED = "فشل في إضافة المنتج إلى السلة"
ERROR_REMOVE_FROM_CART_FAILED = "فشل في حذف المنتج من السلة"
ERROR_UPDATE_QUANTITY_FAILED = "فشل في تحديث الكمية"
ERROR_CLEAR_CART_FAILED = "فشل في تفريغ السلة"
ERROR_CART_EMPTY = "سلة المشتريات فارغة"

# Catalog
ERROR_PRODUCT_NOT_FOUND = "المنتج غير موجود"
ERROR_PRODUCTS_LOAD_FAILED = "فشل في تحميل المنتجات"
ERROR_PRODUCT_LOAD_FAILED = "فشل في تحميل تفاصيل المنتج"

# Orders
ERROR_SHIPPING_ADDRESS_REQUIRED = "يرجى إدخال عنوان الشحن لإتمام الطلب."
ERROR_ORDER_FAILED = "فشل في تنفيذ الطلب."
ERROR_ORDERS_LOAD_FAILED = "فشل في تحميل الطلبات"
SUCCESS_ORDER_PLACED = "{name} تم إضافته إلى طلباتك."

# Profile
ERROR_PROFILE_LOAD_FAILED = "فشل في تحميل الملف الشخصي"
