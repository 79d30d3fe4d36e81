from .inventory_history import InventoryHistory
from .landlord_support_ticket import LandlordSupportTicket, LandlordSupportTicketMessage
from .order import Order, OrderProduct
from .price_plan import PricePlan
from .product import Product, ProductVariant
from .support_ticket import SupportTicket, SupportTicketMessage
from .tenant import Tenant
from .user import User
