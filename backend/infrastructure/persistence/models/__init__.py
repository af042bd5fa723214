"""
ORM 모델 re-export
"""
from infrastructure.persistence.database import Base
from infrastructure.persistence.models.user import User
from infrastructure.persistence.models.order import Order
from infrastructure.persistence.models.deposit import Deposit
from infrastructure.persistence.models.invoice import Invoice
from infrastructure.persistence.models.payment_gateway import PaymentGatewayConfig
from domain.enums import UserRole, OrderStatus, DepositStatus, InvoiceType, InvoiceStatus
