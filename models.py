from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String
from database import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(String(100), nullable=True)
    product_id = Column(String(100), nullable=True)
    user_id = Column(String(100), nullable=True)
    amount = Column(Float, nullable=True)
    date = Column(DateTime, nullable=False, index=True)  # naive UTC
    title = Column(String, nullable=False, default="")
    description = Column(String, nullable=False, default="")
    price = Column(Float, nullable=False, default=0)
    category = Column(String(100), nullable=False, default="")
    sold = Column(Boolean, nullable=True)  # not part of the upstream mapping

    def to_dict(self):
        return {
            "id": self.id,
            "transactionId": self.transaction_id,
            "productId": self.product_id,
            "userId": self.user_id,
            "amount": self.amount,
            "date": self.date.isoformat() if self.date else None,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "sold": self.sold,
        }
