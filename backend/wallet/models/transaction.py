from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, Integer, String
from wallet.core.database import Base


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_amount_positive"),
    )

    # insertion order, used to replay the ledger in order
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False)

    sender_id = Column(String(36), nullable=False, index=True)
    recipient_id = Column(String(36), nullable=False, index=True)

    amount_cents = Column(BigInteger, nullable=False)
    type = Column(String, nullable=False, default="transfer")

    timestamp = Column(DateTime(timezone=True), nullable=False)
