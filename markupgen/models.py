"""Database models for accounts and generated assets."""

import uuid

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy

from markupgen.time_utils import utcnow

db = SQLAlchemy()


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


class Account(UserMixin, db.Model):  # type: ignore[name-defined]
    """
    Account with a generation entitlement.

    The id is the opaque identifier handed over by the external login flow.
    Permanent accounts have no usage cap.
    """

    __tablename__ = "accounts"

    id = db.Column(db.String(64), primary_key=True, default=generate_uuid)
    nickname = db.Column(db.String(255))
    usage_count = db.Column(db.Integer, nullable=False, default=0)
    max_usage = db.Column(db.Integer, nullable=False, default=3)
    is_permanent = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    assets = db.relationship("Asset", backref="account", lazy="dynamic")

    __table_args__ = (
        db.CheckConstraint("usage_count >= 0", name="ck_account_usage_nonneg"),
        db.CheckConstraint("max_usage >= 0", name="ck_account_capacity_nonneg"),
    )

    @property
    def remaining(self) -> int:
        """Remaining generations, -1 when unlimited."""
        if self.is_permanent:
            return -1
        return max(0, (self.max_usage or 0) - (self.usage_count or 0))

    def to_dict(self) -> dict:
        """Convert account to dictionary for API responses."""
        return {
            "id": self.id,
            "nickname": self.nickname,
            "usageCount": self.usage_count,
            "maxUsage": self.max_usage,
            "isPermanent": self.is_permanent,
            "remaining": self.remaining,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<Account {self.id} ({self.usage_count}/{self.max_usage})>"


class Asset(db.Model):  # type: ignore[name-defined]
    """A generated artifact kept for browsing and iterative modification."""

    __tablename__ = "assets"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    account_id = db.Column(
        db.String(64), db.ForeignKey("accounts.id"), nullable=True, index=True
    )
    description = db.Column(db.Text, nullable=False)
    code = db.Column(db.Text, nullable=False)
    content_kind = db.Column(db.String(20), nullable=False, default="graphics")
    provider = db.Column(db.String(50))
    model = db.Column(db.String(100))
    parent_id = db.Column(db.String(36), db.ForeignKey("assets.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def to_dict(self, include_code: bool = True) -> dict:
        """Convert asset to dictionary."""
        data = {
            "id": self.id,
            "accountId": self.account_id,
            "description": self.description,
            "contentKind": self.content_kind,
            "provider": self.provider,
            "model": self.model,
            "parentId": self.parent_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if include_code:
            data["code"] = self.code
        return data

    def __repr__(self) -> str:
        return f"<Asset {self.id[:8]}... ({self.content_kind})>"
