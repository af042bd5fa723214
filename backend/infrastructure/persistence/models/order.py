"""주문 ORM 모델"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Enum, Numeric, JSON
from sqlalchemy.orm import relationship
from infrastructure.persistence.database import Base
from domain.enums import OrderStatus, OrderType


class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    order_type = Column(Enum(OrderType), default=OrderType.FRP_UNLOCK, nullable=False)
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False)
    device_model = Column(String(100), default="", nullable=False)
    imei = Column(String(50), nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    service_data = Column(JSON, nullable=True)
    external_reference_id = Column(String(100), unique=True, nullable=True)
    external_response = Column(JSON, nullable=True)
    public_message = Column(Text, nullable=True)
    # 진행 중인 place 요청의 선점 토큰 (외부 호출 동안 cancel/중복 place 차단)
    placement_token = Column(String(64), nullable=True)
    placement_claimed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    user = relationship("User", back_populates="orders")

    def __repr__(self):
        return f"<Order {self.id} - {self.status}>"
