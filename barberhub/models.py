import enum
from typing import List

from sqlalchemy import (
    DECIMAL,
    DateTime,
    Enum,
    ForeignKeyConstraint,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, relationship

Base = declarative_base()

USER_ROLES = ("user", "barber", "admin")
PAYOUT_METHODS = ("tf", "qris")
BOOKING_LOCATIONS = ("barbershop", "home")
BOOKING_STATUSES = ("pending", "confirmed", "completed", "cancelled")


class PaymentStatus(str, enum.Enum):
    """Known Midtrans transaction states, with OTHER for anything else."""

    PENDING = "pending"
    SETTLEMENT = "settlement"
    CAPTURE = "capture"
    AUTHORIZE = "authorize"
    DENY = "deny"
    CANCEL = "cancel"
    EXPIRE = "expire"
    FAILURE = "failure"
    REFUND = "refund"
    PARTIAL_REFUND = "partial_refund"
    OTHER = "other"

    @classmethod
    def classify(cls, raw):
        if raw is None:
            return cls.OTHER
        try:
            status = cls(str(raw).strip().lower())
        except ValueError:
            return cls.OTHER
        return status

    @classmethod
    def known_values(cls):
        return [s.value for s in cls if s is not cls.OTHER]


class User(Base):
    __tablename__ = "users"
    __table_args__ = (Index("email", "email", unique=True),)

    id = mapped_column(Integer, primary_key=True)
    username = mapped_column(String(100), nullable=False)
    email = mapped_column(String(255), nullable=False)
    password = mapped_column(String(255), nullable=False)
    role = mapped_column(
        Enum(*USER_ROLES, name="user_role"), nullable=False, server_default="user"
    )
    created_at = mapped_column(DateTime, server_default=func.now())
    updated_at = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    reviews: Mapped[List["Review"]] = relationship(
        "Review", uselist=True, back_populates="user"
    )


class Barber(Base):
    __tablename__ = "barbers"
    __table_args__ = (Index("idx_coords", "latitude", "longitude"),)

    id = mapped_column(Integer, primary_key=True)
    name = mapped_column(String(120), nullable=False)
    services = mapped_column(Text, nullable=False)
    paket = mapped_column(String(100), nullable=False)
    price = mapped_column(DECIMAL(12, 2), nullable=False)
    created_at = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )
    phone_number = mapped_column(String(25))
    latitude = mapped_column(DECIMAL(9, 6))
    longitude = mapped_column(DECIMAL(9, 6))
    paket_description = mapped_column(Text)
    profile_image = mapped_column(String(500))
    bank_name = mapped_column(String(50))
    account_number = mapped_column(String(30))
    payment_method = mapped_column(Enum(*PAYOUT_METHODS, name="barber_payout"))

    gallery_images: Mapped[List["GalleryImage"]] = relationship(
        "GalleryImage", uselist=True, back_populates="barber"
    )
    barber_images: Mapped[List["BarberImage"]] = relationship(
        "BarberImage", uselist=True, back_populates="barber"
    )
    bookings: Mapped[List["Booking"]] = relationship(
        "Booking", uselist=True, back_populates="barber"
    )
    reviews: Mapped[List["Review"]] = relationship(
        "Review", uselist=True, back_populates="barber"
    )


class GalleryImage(Base):
    __tablename__ = "gallery_images"
    __table_args__ = (
        ForeignKeyConstraint(
            ["barber_id"], ["barbers.id"], ondelete="CASCADE", name="fk_gi_barber"
        ),
        Index("fk_gi_barber", "barber_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    barber_id = mapped_column(Integer, nullable=False)
    image_url = mapped_column(String(500), nullable=False)
    created_at = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    barber: Mapped["Barber"] = relationship("Barber", back_populates="gallery_images")


class BarberImage(Base):
    __tablename__ = "barber_images"
    __table_args__ = (
        ForeignKeyConstraint(
            ["barber_id"], ["barbers.id"], ondelete="CASCADE", name="fk_bi_barber"
        ),
        Index("fk_bi_barber", "barber_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    barber_id = mapped_column(Integer, nullable=False)
    image_url = mapped_column(String(500), nullable=False)
    created_at = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    barber: Mapped["Barber"] = relationship("Barber", back_populates="barber_images")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        ForeignKeyConstraint(
            ["barber_id"], ["barbers.id"], ondelete="CASCADE", name="fk_bk_barber"
        ),
        Index("fk_bk_barber", "barber_id"),
        Index("idx_bk_email", "email"),
    )

    id = mapped_column(Integer, primary_key=True)
    email = mapped_column(String(255), nullable=False)
    barber_id = mapped_column(Integer, nullable=False)
    appointment_time = mapped_column(DateTime, nullable=False)
    location = mapped_column(
        Enum(*BOOKING_LOCATIONS, name="booking_location"), nullable=False
    )
    service = mapped_column(String(255), nullable=False)
    price = mapped_column(DECIMAL(12, 2), nullable=False)
    payment_method = mapped_column(
        Enum(*PAYOUT_METHODS, name="booking_payout"), nullable=False
    )
    status = mapped_column(
        Enum(*BOOKING_STATUSES, name="booking_status"),
        nullable=False,
        server_default="pending",
    )
    created_at = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )
    address = mapped_column(String(255))
    latitude = mapped_column(DECIMAL(9, 6))
    longitude = mapped_column(DECIMAL(9, 6))
    paket = mapped_column(String(100))
    paket_description = mapped_column(Text)
    bank_name = mapped_column(String(50))
    account_number = mapped_column(String(30))

    barber: Mapped["Barber"] = relationship("Barber", back_populates="bookings")
    payments: Mapped[List["Payment"]] = relationship(
        "Payment", uselist=True, back_populates="booking"
    )


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        ForeignKeyConstraint(
            ["booking_id"], ["bookings.id"], ondelete="CASCADE", name="fk_pay_booking"
        ),
        Index("fk_pay_booking", "booking_id"),
        Index("uq_order_id", "order_id", unique=True),
        Index("idx_pay_barber", "barber_id"),
    )

    id = mapped_column(String(64), primary_key=True)
    booking_id = mapped_column(Integer, nullable=False)
    order_id = mapped_column(String(64), nullable=False)
    amount = mapped_column(DECIMAL(12, 2), nullable=False)
    payment_method = mapped_column(
        Enum(*PAYOUT_METHODS, name="payment_method"), nullable=False
    )
    status = mapped_column(String(32), nullable=False, server_default="pending")
    created_at = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )
    bank_name = mapped_column(String(50))
    account_number = mapped_column(String(30))
    qris_code = mapped_column(Text)
    barber_id = mapped_column(Integer)
    barber_name = mapped_column(String(120))
    barber_phone_number = mapped_column(String(25))
    user_email = mapped_column(String(255))
    midtrans_token = mapped_column(String(255))
    midtrans_url = mapped_column(String(500))

    booking: Mapped["Booking"] = relationship("Booking", back_populates="payments")
    proofs: Mapped[List["PaymentProof"]] = relationship(
        "PaymentProof", uselist=True, back_populates="payment"
    )

    @property
    def status_kind(self):
        return PaymentStatus.classify(self.status)


class PaymentProof(Base):
    __tablename__ = "payment_uploadProof"
    __table_args__ = (
        ForeignKeyConstraint(
            ["payment_id"], ["payments.id"], ondelete="CASCADE", name="fk_proof_payment"
        ),
        Index("fk_proof_payment", "payment_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    payment_id = mapped_column(String(64), nullable=False)
    proof_file = mapped_column(String(500), nullable=False)
    created_at = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    payment: Mapped["Payment"] = relationship("Payment", back_populates="proofs")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        ForeignKeyConstraint(
            ["barber_id"], ["barbers.id"], ondelete="CASCADE", name="fk_rv_barber"
        ),
        ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="SET NULL", name="fk_rv_user"
        ),
        Index("barber_id", "barber_id", "created_at"),
        Index("fk_rv_user", "user_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    barber_id = mapped_column(Integer, nullable=False)
    rating = mapped_column(SmallInteger, nullable=False)
    comment = mapped_column(String(500), nullable=False)
    created_at = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )
    user_id = mapped_column(Integer)
    username = mapped_column(String(100))

    barber: Mapped["Barber"] = relationship("Barber", back_populates="reviews")
    user: Mapped["User"] = relationship("User", back_populates="reviews")
