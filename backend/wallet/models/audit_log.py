from sqlalchemy import BigInteger, Column, DateTime, Integer, String
from wallet.core.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # what happened, e.g. "balance_override"
    action = Column(String, nullable=False)

    # who
    actor_id = Column(String(36), nullable=False)
    actor_username = Column(String, nullable=False)

    # to whom
    target_id = Column(String(36), nullable=False, index=True)

    # change details
    old_cents = Column(BigInteger, nullable=False, default=0)
    new_cents = Column(BigInteger, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False)
