from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, String
from wallet.core.database import Base


class User(Base):
    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint("balance_cents >= 0", name="ck_balance_non_negative"),
    )

    # uuid4 string
    id = Column(String(36), primary_key=True)

    username = Column(String(30), unique=True, index=True, nullable=False)
    email = Column(String, nullable=False)

    # "user" | "admin"
    role = Column(String, nullable=False, default="user")

    password_hash = Column(String, nullable=False)

    # whole cents, so no float drift in the database either
    balance_cents = Column(BigInteger, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False)
