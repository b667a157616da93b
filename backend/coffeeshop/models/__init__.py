from .users import User, Profile, ForgotPassword, ROLES, ROLE_USER, ROLE_ADMIN
from .catalog import Category, Variant, Size, Product, ProductImage, ProductSize, RecommendedProduct, FOOD_VARIANT
from .orders import Status, PaymentMethod, Shipping, Transaction, TransactionItem, CartItem, DEFAULT_STATUS

__all__ = [
    'User', 'Profile', 'ForgotPassword', 'ROLES', 'ROLE_USER', 'ROLE_ADMIN',
    'Category', 'Variant', 'Size', 'Product', 'ProductImage', 'ProductSize', 'RecommendedProduct',
    'FOOD_VARIANT',
    'Status', 'PaymentMethod', 'Shipping', 'Transaction', 'TransactionItem', 'CartItem',
    'DEFAULT_STATUS',
]
