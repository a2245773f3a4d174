from app.models.user import User, UserProfile, LoginSession
from app.models.address import Address
from app.models.shop import Shop
from app.models.product import Product, Addon
from app.models.coupon import Coupon
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.order_timeline import OrderTimelineEvent
from app.models.payment_method import PaymentMethod
from app.models.activity_log import UserActivityLog

# add ALL models here
