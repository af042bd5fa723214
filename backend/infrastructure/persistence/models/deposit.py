"""입금 ORM 모델"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Enum, Numeric
from sqlalchemy.orm import relationship
from infrastructure.persistence.database import Base
from domain.enums import DepositStatus


class Deposit(Base):
    __tablename__ = "deposits"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(10), default="usd", nullable=False)
    payment_gateway = Column(String(50), nullable=False)
    status = Column(Enum(DepositStatus, values_callable=lambda e: [m.value for m in e]),
                    default=DepositStatus.PENDING, nullable=False)
    external_payment_id = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    user = relationship("User", back_populates="deposits")

    def __repr__(self):
        return f"<Deposit {self.id} - {self.amount} {self.currency} ({self.status})>"
