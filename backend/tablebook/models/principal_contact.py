# backend/tablebook/models/principal_contact.py
"""Directory of principal contact details used for notifications."""

from sqlalchemy import CheckConstraint, Column, String

from ..database import Base


class PrincipalContact(Base):
    """
    Read-only view of an identity known to the platform.

    Rows are written by the identity system; the reservation core only
    resolves ids to addresses and role claims.
    """

    __tablename__ = "principal_contacts"

    principal_id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False)
    display_name = Column(String(100), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'restaurant_operator', 'diner')",
            name="ck_principal_contacts_role",
        ),
    )

    def __repr__(self) -> str:
        return f"<PrincipalContact {self.principal_id}: {self.email} ({self.role})>"
